#!/usr/bin/env python
#    swidbindtest/xmltest.py - test cases for the swidbind.XML entry points
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
import io, os, tempfile, threading, unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from swidbind import BindException, Envelope, UnmarshalError
from swidbind.XML import ( read_object, read_object_from_stream, read_object_from_string, write_object
    , write_object_to_string, dump, dumps, load, loads )
from swidbind.exceptions import BindingError, UnsupportedDestinationError
import swidbindtest
from swidbindtest import SWID_NS, Entity, Note, Product, Role, SoftwareIdentity, sample_tag

class StringTests ( swidbindtest.SwidBindTests ) :
    def setUp ( self ) :
        self.marshal = write_object_to_string
        self.unmarshal = read_object_from_string

class PickleStyleTests ( swidbindtest.SwidBindTests ) :
    def setUp ( self ) :
        self.marshal = dumps
        self.unmarshal = loads

class StreamTests ( swidbindtest.SwidBindTests ) :
    def setUp ( self ) :
        self.marshal = self._to_stream
        self.unmarshal = load

    def _to_stream ( self, data ) :
        stream = io.BytesIO()
        dump( data, stream )
        stream.seek( 0 )
        return stream

class PathTests ( swidbindtest.SwidBindTests ) :
    def setUp ( self ) :
        self.directory = tempfile.TemporaryDirectory()
        self.marshal = self._to_path
        self.unmarshal = self._from_path

    def tearDown ( self ) :
        self.directory.cleanup()

    def _to_path ( self, data ) :
        path = os.path.join( self.directory.name, "tag.swidtag" )
        write_object( data, path )
        return path

    def _from_path ( self, path, kind ) :
        with open( path, "rb" ) as f :
            return read_object_from_stream( f, kind )

class Recorder ( object ) :
    def __init__ ( self ) :
        self.calls = []
    def write ( self, data ) :
        self.calls.append( data )

class WriteTests ( unittest.TestCase ) :
    def testLayout ( self ) :
        tag = SoftwareIdentity( name = "ACME", tag_id = "acme-1", version = "1.0"
            , entities = [ Entity( name = "ACME", reg_id = "acme.com", role = Role.TAG_CREATOR ) ] )
        expected = ( '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
            '<SoftwareIdentity xmlns="%s" name="ACME" tagId="acme-1" version="1.0" corpus="false" tagVersion="0">\n'
            '    <Entity name="ACME" regid="acme.com" role="tagCreator" />\n'
            '</SoftwareIdentity>\n' ) % SWID_NS
        self.assertEqual( write_object_to_string( tag ), expected )

    def testIdempotent ( self ) :
        tag = sample_tag()
        self.assertEqual( write_object_to_string( tag ), write_object_to_string( tag ) )

    def testComment ( self ) :
        comment = "<!-- generated by swidbind -->"
        stream = io.BytesIO()
        write_object( sample_tag(), stream, comment )
        text = stream.getvalue().decode( "utf-8" )
        self.assertEqual( text.splitlines()[0], comment )
        self.assertEqual( text.count( comment ), 1 )
        self.assertNotIn( "<?xml", text )
        self.assertEqual( read_object_from_string( text, SoftwareIdentity ), sample_tag() )

    def testBlankComment ( self ) :
        for comment in ( None, "", "   ", "\n" ) :
            stream = io.BytesIO()
            write_object( sample_tag(), stream, comment )
            self.assertTrue( stream.getvalue().startswith( b"<?xml" ), repr( comment ) )

    def testToStringHasNoComment ( self ) :
        self.assertTrue( write_object_to_string( sample_tag() ).startswith( "<?xml" ) )

    def testDestinationsAgree ( self ) :
        tag = sample_tag( 3 )
        byte_stream = io.BytesIO()
        char_stream = io.StringIO()
        write_object( tag, byte_stream, "<!-- same -->" )
        write_object( tag, char_stream, "<!-- same -->" )
        with tempfile.TemporaryDirectory() as directory :
            path = os.path.join( directory, "tag.swidtag" )
            write_object( tag, path, "<!-- same -->" )
            with open( path, "rb" ) as f :
                from_path = f.read()
        self.assertEqual( byte_stream.getvalue(), from_path )
        self.assertEqual( char_stream.getvalue(), from_path.decode( "utf-8" ) )

    def testPathIsTruncated ( self ) :
        with tempfile.TemporaryDirectory() as directory :
            path = os.path.join( directory, "tag.swidtag" )
            with open( path, "w" ) as f :
                f.write( "x" * 100000 )
            write_object( SoftwareIdentity( name = "Short", tag_id = "s" ), path )
            with open( path, "rb" ) as f :
                self.assertEqual( read_object_from_stream( f, SoftwareIdentity ).name, "Short" )

    def testCallerStreamsStayOpen ( self ) :
        byte_stream = io.BytesIO()
        char_stream = io.StringIO()
        write_object( sample_tag(), byte_stream )
        write_object( sample_tag(), char_stream )
        self.assertFalse( byte_stream.closed )
        self.assertFalse( char_stream.closed )

    def testUnsupportedDestination ( self ) :
        recorder = Recorder()
        for destination in ( recorder, object(), 42, [], None, b"/tmp/tag.swidtag" ) :
            with self.assertRaises( UnsupportedDestinationError ) :
                write_object( sample_tag(), destination )
        self.assertEqual( recorder.calls, [] )

    def testUnsupportedDestinationIsTypeError ( self ) :
        with self.assertRaises( TypeError ) as caught :
            write_object( sample_tag(), object() )
        self.assertIsNotNone( caught.exception.cause )

    def testUnsupportedDestinationBeforeBinding ( self ) :
        """An unusable entity and an unusable destination: the destination is reported."""
        with self.assertRaises( UnsupportedDestinationError ) :
            write_object( object(), object() )

    def testEnvelope ( self ) :
        entity = Entity( name = "ACME", role = Role.SOFTWARE_CREATOR )
        text = write_object_to_string( Envelope( "Entity", entity, SWID_NS ) )
        self.assertIn( '<Entity xmlns="%s" name="ACME" role="softwareCreator" />' % SWID_NS, text )
        self.assertEqual( read_object_from_string( text, Entity ), entity )

    def testBareEntityWithoutRoot ( self ) :
        with self.assertRaises( BindingError ) as caught :
            write_object_to_string( Entity( name = "ACME", role = Role.LICENSOR ) )
        self.assertIsInstance( caught.exception.cause, BindException )
        self.assertIs( caught.exception.__cause__, caught.exception.cause )

    def testNotAModel ( self ) :
        for entity in ( object(), { "name" : "x" }, Envelope( "x", 42 ) ) :
            with self.assertRaises( BindingError ) :
                write_object( entity, io.BytesIO() )

    def testConstraintViolation ( self ) :
        tag = sample_tag()
        tag.tag_version = -1
        stream = io.BytesIO()
        with self.assertRaises( BindingError ) :
            write_object( tag, stream )
        self.assertEqual( stream.getvalue(), b"" )

    def testIndentSetting ( self ) :
        with mock.patch.dict( os.environ, { "SWIDBIND_INDENT_WIDTH" : "2" } ) :
            text = write_object_to_string( sample_tag() )
        self.assertIn( '\n  <Entity name="The ACME Corporation"', text )
        self.assertEqual( read_object_from_string( text, SoftwareIdentity ), sample_tag() )

    def testEncodingSetting ( self ) :
        tag = SoftwareIdentity( name = "Café ☃", tag_id = "latin" )
        with mock.patch.dict( os.environ, { "SWIDBIND_STRING_ENCODING" : "ISO-8859-1" } ) :
            stream = io.BytesIO()
            write_object( tag, stream )
            data = stream.getvalue()
            self.assertTrue( data.startswith( b'<?xml version="1.0" encoding="ISO-8859-1"' ) )
            self.assertIn( b"Caf\xe9 &#9731;", data )
            stream.seek( 0 )
            self.assertEqual( read_object_from_stream( stream, SoftwareIdentity ), tag )

    def testCommentWithEncodingSetting ( self ) :
        """Documents in other encodings keep their declaration ahead of the comment"""
        tag = SoftwareIdentity( name = "Café", tag_id = "latin" )
        with mock.patch.dict( os.environ, { "SWIDBIND_STRING_ENCODING" : "ISO-8859-1" } ) :
            stream = io.BytesIO()
            write_object( tag, stream, "<!-- c -->" )
            lines = stream.getvalue().split( b"\n" )
            self.assertTrue( lines[0].startswith( b'<?xml version="1.0" encoding="ISO-8859-1"' ) )
            self.assertEqual( lines[1], b"<!-- c -->" )
            stream.seek( 0 )
            self.assertEqual( read_object_from_stream( stream, SoftwareIdentity ), tag )

    def testIllegalCharacter ( self ) :
        for tag in ( SoftwareIdentity( name = "a\x01b", tag_id = "ctl" )
                , Product( title = "bell\x07" ), Product( title = "t", notes = [ Note( text = "\x1b[0m" ) ] ) ) :
            stream = io.BytesIO()
            with self.assertRaises( BindingError ) :
                write_object( tag, stream )
            self.assertEqual( stream.getvalue(), b"" )

    def testMissingDirectory ( self ) :
        with tempfile.TemporaryDirectory() as directory :
            path = os.path.join( directory, "no-such-dir", "tag.swidtag" )
            with self.assertRaises( BindingError ) as caught :
                write_object( sample_tag(), path )
        self.assertIsInstance( caught.exception.cause, FileNotFoundError )

    def testClosedStream ( self ) :
        for stream in ( io.BytesIO(), io.StringIO() ) :
            stream.close()
            with self.assertRaises( BindingError ) as caught :
                write_object( sample_tag(), stream )
            self.assertIsInstance( caught.exception.cause, ValueError )

    def testTemporaryFiles ( self ) :
        with tempfile.NamedTemporaryFile() as f :
            write_object( sample_tag(), f )
            f.seek( 0 )
            self.assertEqual( read_object_from_stream( f, SoftwareIdentity ), sample_tag() )
        with tempfile.NamedTemporaryFile( "w+", encoding = "utf-8" ) as f :
            write_object( sample_tag(), f )
            f.seek( 0 )
            self.assertEqual( read_object_from_string( f.read(), SoftwareIdentity ), sample_tag() )
        with tempfile.SpooledTemporaryFile() as f :
            write_object( sample_tag(), f )
            f.seek( 0 )
            self.assertEqual( read_object_from_stream( f, SoftwareIdentity ), sample_tag() )

class ReadTests ( unittest.TestCase ) :
    def _fails ( self, content, kind = SoftwareIdentity ) :
        with self.assertRaises( BindingError ) as caught :
            read_object_from_string( content, kind )
        self.assertIsNotNone( caught.exception.cause )
        self.assertIs( caught.exception.__cause__, caught.exception.cause )
        return caught.exception

    def testNotXML ( self ) :
        error = self._fails( "this is not xml" )
        self.assertIsInstance( error.cause, UnmarshalError )

    def testTruncated ( self ) :
        text = write_object_to_string( sample_tag() )
        self._fails( text[:len( text ) // 2] )

    def testEmpty ( self ) :
        self._fails( "" )

    def testUnencodableContent ( self ) :
        with mock.patch.dict( os.environ, { "SWIDBIND_STRING_ENCODING" : "ISO-8859-1" } ) :
            error = self._fails( '<SoftwareIdentity xmlns="%s" name="☃" tagId="y"/>' % SWID_NS )
        self.assertIsInstance( error.cause, UnicodeEncodeError )
        error = self._fails( '<SoftwareIdentity xmlns="%s" name="\ud800" tagId="y"/>' % SWID_NS )
        self.assertIsInstance( error.cause, UnicodeEncodeError )

    def testWrongRoot ( self ) :
        self._fails( '<Product><title>x</title></Product>' )

    def testWrongNamespace ( self ) :
        self._fails( '<SoftwareIdentity xmlns="urn:other" name="x" tagId="y"/>' )

    def testMissingRequiredAttribute ( self ) :
        self._fails( '<SoftwareIdentity xmlns="%s" tagId="y"/>' % SWID_NS )

    def testBadValue ( self ) :
        self._fails( '<SoftwareIdentity xmlns="%s" name="x" tagId="y" tagVersion="many"/>' % SWID_NS )
        self._fails( '<SoftwareIdentity xmlns="%s" name="x" tagId="y" tagVersion="-3"/>' % SWID_NS )
        self._fails( '<SoftwareIdentity xmlns="%s" name="x" tagId="y"><Entity name="e" role="janitor"/></SoftwareIdentity>' % SWID_NS )

    def testUnboundType ( self ) :
        self._fails( '<dict/>', dict )

    def testNoStream ( self ) :
        with self.assertRaises( BindingError ) :
            read_object_from_stream( None, SoftwareIdentity )

    def testCallerStreamStaysOpen ( self ) :
        stream = io.BytesIO( write_object_to_string( sample_tag() ).encode( "utf-8" ) )
        read_object_from_stream( stream, SoftwareIdentity )
        self.assertFalse( stream.closed )

    def testUnknownContentIgnored ( self ) :
        tag = read_object_from_string( '<SoftwareIdentity xmlns="%s" name="x" tagId="y" media="(OS:win)">'
            '<Payload><File name="a.exe"/></Payload><Entity name="e" role="licensor"/></SoftwareIdentity>' % SWID_NS
            , SoftwareIdentity )
        self.assertEqual( tag.entities, [ Entity( name = "e", role = Role.LICENSOR ) ] )

class ResourceTests ( unittest.TestCase ) :
    def testResource ( self ) :
        tag = read_object( "swidbindtest/resources/product.swidtag", SoftwareIdentity )
        self.assertEqual( tag.tag_id, "com.acme.rrd2013-ce-sp1-v4-1-5-0" )
        self.assertEqual( tag.tag_version, 3 )
        self.assertEqual( [ e.role for e in tag.entities ], [ Role.TAG_CREATOR, Role.LICENSOR ] )
        self.assertEqual( tag.meta[0].colloquial_version, "2013" )

    def testLeadingSlash ( self ) :
        self.assertEqual( read_object( "/swidbindtest/resources/product.swidtag", SoftwareIdentity ).version, "4.1.5" )

    def testResourcePackage ( self ) :
        with mock.patch.dict( os.environ, { "SWIDBIND_RESOURCE_PACKAGES" : '["swidbindtest"]' } ) :
            tag = read_object( "resources/product.swidtag", SoftwareIdentity )
        self.assertEqual( tag.name, "ACME Roadrunner Detector" )

    def testMissingResource ( self ) :
        with self.assertRaises( BindingError ) as caught :
            read_object( "swidbindtest/resources/no-such.swidtag", SoftwareIdentity )
        self.assertIsInstance( caught.exception.cause, FileNotFoundError )

    def testResourceOfWrongType ( self ) :
        with self.assertRaises( BindingError ) :
            read_object( "swidbindtest/resources/product.swidtag", Product )

class ConcurrencyTests ( unittest.TestCase ) :
    def testIndependentThreads ( self ) :
        barrier = threading.Barrier( 8 )
        def roundtrip ( i ) :
            tag = sample_tag( i )
            if i < 8 :
                barrier.wait()
            text = write_object_to_string( tag )
            return tag, read_object_from_string( text, SoftwareIdentity )
        with ThreadPoolExecutor( max_workers = 8 ) as pool :
            results = list( pool.map( roundtrip, range( 64 ) ) )
        for i, ( written, read ) in enumerate( results ) :
            self.assertEqual( read, written )
            self.assertEqual( read.tag_id, "com.acme.rrd.%d" % i )

if __name__ == "__main__":
    unittest.main()
