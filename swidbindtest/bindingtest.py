#!/usr/bin/env python
#    swidbindtest/bindingtest.py - test cases for the swidbind binding layer
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
import io, unittest
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel

from swidbind import ( Attribute, BindingContext, ContextError, Element, Envelope, MarshalError, Text
    , UnmarshalError, to_lexical, xml_root )
from swidbindtest import SWID_NS, Entity, Evidence, Link, Meta, Note, Product, Role, SoftwareIdentity, sample_tag

class Node ( BaseModel ) :
    name : Annotated[ str, Attribute() ]
    children : Annotated[ list[ "Node" ], Element( "Node" ) ] = []

Node.model_rebuild()

@xml_root( "Measurement" )
class Measurement ( BaseModel ) :
    taken : datetime
    day : date
    amount : Decimal
    ratio : float
    valid : bool = True
    comment : Optional[ str ] = None

class Mapping ( BaseModel ) :
    values : dict[ str, str ]

class Untyped ( BaseModel ) :
    value : Any

class RepeatedAttribute ( BaseModel ) :
    names : Annotated[ list[ str ], Attribute() ]

class ComplexAttribute ( BaseModel ) :
    entity : Annotated[ Entity, Attribute() ]

class TwoTexts ( BaseModel ) :
    first : Annotated[ str, Text() ]
    second : Annotated[ str, Text() ]

class NestedLists ( BaseModel ) :
    grid : list[ list[ int ] ]

class ContextTests ( unittest.TestCase ) :
    def testNotAModel ( self ) :
        for kind in ( dict, int, object, None, "SoftwareIdentity", sample_tag() ) :
            with self.assertRaises( ContextError ) :
                BindingContext.new_instance( kind )

    def testUnsupportedFields ( self ) :
        for kind in ( Mapping, Untyped, RepeatedAttribute, ComplexAttribute, TwoTexts, NestedLists ) :
            with self.assertRaises( ContextError, msg = kind.__name__ ) :
                BindingContext.new_instance( kind )

    def testReachableTypes ( self ) :
        context = BindingContext.new_instance( SoftwareIdentity )
        self.assertEqual( set( context.bindings ), { SoftwareIdentity, Entity, Evidence, Link, Meta } )

    def testSelfReference ( self ) :
        context = BindingContext.new_instance( Node )
        self.assertEqual( list( context.bindings ), [ Node ] )

    def testContextsAreIndependent ( self ) :
        self.assertIsNot( BindingContext.new_instance( Product ).bindings
            , BindingContext.new_instance( Product ).bindings )

    def testUnknownType ( self ) :
        context = BindingContext.new_instance( Product )
        with self.assertRaises( ContextError ) :
            context.binding_for( SoftwareIdentity )

class MarshallerTests ( unittest.TestCase ) :
    def _marshal ( self, entity, **kwargs ) :
        value = entity.value if isinstance( entity, Envelope ) else entity
        return BindingContext.new_instance( type( value ) ).create_marshaller( **kwargs ).marshal( entity )

    def _unmarshal ( self, text, kind ) :
        return BindingContext.new_instance( kind ).create_unmarshaller().unmarshal( io.BytesIO( text.encode( "utf-8" ) ), kind )

    def testUnformatted ( self ) :
        text = self._marshal( Envelope( "Note", Note( lang = "fr", text = "bonjour" ) ) )
        self.assertEqual( text, '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n<Note lang="fr">bonjour</Note>\n' )

    def testFormatted ( self ) :
        text = self._marshal( Product( title = "Detector", keywords = [ "a", "b" ] ), formatted_output = True, indent = "\t" )
        self.assertEqual( text.splitlines()[1:], [ "<Product>", "\t<title>Detector</title>", "\t<Keyword>a</Keyword>"
            , "\t<Keyword>b</Keyword>", "</Product>" ] )

    def testHeaders ( self ) :
        text = self._marshal( Product( title = "x" ), xml_headers = "<!-- one -->\n" )
        self.assertEqual( text, "<!-- one -->\n<Product><title>x</title></Product>\n" )

    def testEncodingDeclaration ( self ) :
        text = self._marshal( Product( title = "x" ), encoding = "ISO-8859-1" )
        self.assertTrue( text.startswith( '<?xml version="1.0" encoding="ISO-8859-1" standalone="yes"?>' ) )

    def testHeadersKeepDeclaration ( self ) :
        text = self._marshal( Product( title = "x" ), xml_headers = "<!-- one -->", encoding = "ISO-8859-1" )
        self.assertEqual( text, '<?xml version="1.0" encoding="ISO-8859-1" standalone="yes"?>\n'
            '<!-- one -->\n<Product><title>x</title></Product>\n' )
        for encoding in ( "UTF-8", "utf8", "UTF-16" ) :
            text = self._marshal( Product( title = "x" ), xml_headers = "<!-- one -->", encoding = encoding )
            self.assertTrue( text.startswith( "<!-- one -->\n" ), encoding )

    def testIllegalCharacters ( self ) :
        for value in ( Product( title = "a\x00b" ), Product( title = "x", keywords = [ "\x0b" ] )
                , Envelope( "Note", Note( lang = "\x1f", text = "t" ) ), Envelope( "Note", Note( text = "\ufffe" ) ) ) :
            with self.assertRaises( MarshalError, msg = repr( value ) ) :
                self._marshal( value )

    def testLeafContentKept ( self ) :
        value = Product( title = " t ", keywords = [ "  " ], notes = [ Note( text = "\n x \n" ) ] )
        text = self._marshal( value, formatted_output = True )
        self.assertEqual( self._unmarshal( text, Product ).value, value )

    def testNoneOmitted ( self ) :
        text = self._marshal( Envelope( "Entity", Entity( name = "e", role = Role.LICENSOR ) ) )
        self.assertNotIn( "regid", text )

    def testNamespaceDeclaredOnce ( self ) :
        text = self._marshal( sample_tag(), formatted_output = True )
        self.assertEqual( text.count( "xmlns" ), 1 )
        self.assertIn( '<SoftwareIdentity xmlns="%s"' % SWID_NS, text )

    def testEnvelopeOverridesRoot ( self ) :
        text = self._marshal( Envelope( "Artefact", Product( title = "x" ), "urn:example" ) )
        self.assertIn( '<Artefact xmlns="urn:example"><title>x</title></Artefact>', text )

    def testMissingRoot ( self ) :
        with self.assertRaises( MarshalError ) :
            self._marshal( Note( text = "no root" ) )

    def testRevalidation ( self ) :
        product = Product( title = "x" )
        product.keywords = [ "fine", object() ]
        with self.assertRaises( MarshalError ) :
            self._marshal( product )

    def testSimpleTypes ( self ) :
        value = Measurement( taken = datetime( 2024, 3, 15, 10, 30, 45, tzinfo = timezone.utc ), day = date( 2024, 3, 15 )
            , amount = Decimal( "10.250" ), ratio = 0.5, valid = False )
        text = self._marshal( value )
        for fragment in ( "<taken>2024-03-15T10:30:45+00:00</taken>", "<day>2024-03-15</day>", "<amount>10.250</amount>"
                , "<ratio>0.5</ratio>", "<valid>false</valid>" ) :
            self.assertIn( fragment, text )
        self.assertNotIn( "<comment>", text )
        self.assertEqual( self._unmarshal( text, Measurement ).value, value )

    def testSelfReferenceRoundTrip ( self ) :
        tree = Node( name = "root", children = [ Node( name = "a", children = [ Node( name = "a1" ) ] ), Node( name = "b" ) ] )
        text = self._marshal( Envelope( "Node", tree ), formatted_output = True )
        self.assertEqual( self._unmarshal( text, Node ).value, tree )

class UnmarshallerTests ( unittest.TestCase ) :
    def _unmarshal ( self, text, kind ) :
        return BindingContext.new_instance( kind ).create_unmarshaller().unmarshal( io.BytesIO( text.encode( "utf-8" ) ), kind )

    def testEnvelope ( self ) :
        element = self._unmarshal( '<SoftwareIdentity xmlns="%s" name="n" tagId="t"/>' % SWID_NS, SoftwareIdentity )
        self.assertEqual( element.name, "SoftwareIdentity" )
        self.assertEqual( element.namespace, SWID_NS )
        self.assertEqual( element.value, SoftwareIdentity( name = "n", tag_id = "t" ) )

    def testAnyRootForUndeclaredType ( self ) :
        element = self._unmarshal( '<Remark lang="de">hallo</Remark>', Note )
        self.assertEqual( element, Envelope( "Remark", Note( lang = "de", text = "hallo" ) ) )

    def testDefaultsFromContext ( self ) :
        context = BindingContext.new_instance( Product )
        element = context.create_unmarshaller().unmarshal( io.BytesIO( b"<Product><title>t</title></Product>" ) )
        self.assertEqual( element.value, Product( title = "t" ) )

    def testBooleanForms ( self ) :
        for lexical, expected in ( ( "true", True ), ( "1", True ), ( "false", False ), ( "0", False ) ) :
            element = self._unmarshal( '<SoftwareIdentity xmlns="%s" name="n" tagId="t" corpus="%s"/>' % ( SWID_NS, lexical ), SoftwareIdentity )
            self.assertIs( element.value.corpus, expected )

    def testMalformed ( self ) :
        with self.assertRaises( UnmarshalError ) :
            self._unmarshal( "<Product><title>t</Product>", Product )

    def testValidation ( self ) :
        with self.assertRaises( UnmarshalError ) :
            self._unmarshal( "<Product><Keyword>k</Keyword></Product>", Product )

class LexicalTests ( unittest.TestCase ) :
    def testForms ( self ) :
        self.assertEqual( to_lexical( True ), "true" )
        self.assertEqual( to_lexical( 0 ), "0" )
        self.assertEqual( to_lexical( float( "inf" ) ), "INF" )
        self.assertEqual( to_lexical( float( "-inf" ) ), "-INF" )
        self.assertEqual( to_lexical( float( "nan" ) ), "NaN" )
        self.assertEqual( to_lexical( Role.LICENSOR ), "licensor" )
        self.assertEqual( to_lexical( Decimal( "1.50" ) ), "1.50" )

    def testNoForm ( self ) :
        with self.assertRaises( MarshalError ) :
            to_lexical( object() )

    def testOutsideXmlCharacters ( self ) :
        for value in ( "a\x01b", "\x7f\x00", "\ud800", "\uffff" ) :
            with self.assertRaises( MarshalError, msg = repr( value ) ) :
                to_lexical( value )
        self.assertEqual( to_lexical( "tab\tline\nreturn\r\U0001f600" ), "tab\tline\nreturn\r\U0001f600" )

if __name__ == "__main__":
    unittest.main()
