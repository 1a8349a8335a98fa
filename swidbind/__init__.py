#    swidbind/__init__.py - declarative XML object binding
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
r"""SWIDBIND is a library to bind typed Python objects to XML documents and back.  It was
written to read and write SWID (Software Identification) tags, but nothing in the binding
layer knows about SWID; the document shape is entirely described by the model classes
handed to it.

Model classes are ordinary pydantic models.  The XML shape of each field is declared with
a marker in the field's ``Annotated`` metadata:

 - ``Attribute( name )`` binds the field to an attribute of the element;
 - ``Element( name )`` binds the field to a child element (the default for unmarked fields);
 - ``Text()`` binds the field to the element's character content.

The root element of a document is declared with the ``xml_root`` class decorator, or
supplied per document by wrapping the value in an ``Envelope``::

    @xml_root( "SoftwareIdentity", namespace = SWID_NS )
    class SoftwareIdentity ( BaseModel ) :
        name : Annotated[ str, Attribute() ]
        tag_id : Annotated[ str, Attribute( "tagId" ) ]
        entities : Annotated[ list[ Entity ], Element( "Entity" ) ] = []

A ``BindingContext`` is built for one type (and the model types it refers to).  It hands out
``Marshaller``s, which turn an instance into an XML document, and ``Unmarshaller``s, which
turn an XML document into an instance.  Contexts are cheap and hold no state beyond the
field tables of their type; nothing is cached between contexts.

Values are checked by pydantic on the way in (unmarshalling) and again on the way out
(marshalling), so a document is never produced from, or read into, an instance that
violates its model's constraints.

The user-facing entry points live in :mod:`swidbind.XML`.
"""
import codecs, enum, logging, re, types, typing
from datetime import date, datetime
from decimal import Decimal
from inspect import getmro
import xml.etree.ElementTree as ET

from pydantic import BaseModel, ValidationError

from swidbind.datatype import XmlCalendar

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'Attribute', 'Element', 'Text', 'xml_root', 'Envelope', 'BindingContext', 'Marshaller'
    , 'Unmarshaller', 'BindException', 'ContextError', 'MarshalError', 'UnmarshalError' ]

log = logging.getLogger( "swidbind.binding" )

XML_DECLARATION = '<?xml version="1.0" encoding="%s" standalone="yes"?>'

# a parser can only do without the declaration when the document is in one of these.
SELF_DESCRIBING = ( 'utf-8', 'utf-16' )

# everything outside the XML 1.0 Char production.
ILLEGAL_CHARS = re.compile( "[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]" )

class BindException ( Exception ) :
    r"""Base class of everything the binding layer raises."""

class ContextError ( BindException ) :
    r"""A binding context could not be built for a type."""

class MarshalError ( BindException ) :
    pass

class UnmarshalError ( BindException ) :
    pass

class Attribute ( object ) :
    __slots__ = ( 'name', )
    def __init__ ( self, name = None ) :
        self.name = name
    def __repr__ ( self ) :
        return "Attribute(%r)" % self.name

class Element ( object ) :
    __slots__ = ( 'name', )
    def __init__ ( self, name = None ) :
        self.name = name
    def __repr__ ( self ) :
        return "Element(%r)" % self.name

class Text ( object ) :
    __slots__ = ()
    name = None
    def __repr__ ( self ) :
        return "Text()"

def xml_root ( name, namespace = None ) :
    r"""Class decorator declaring the root element ``name`` (in ``namespace``) of documents
    whose top-level value is an instance of the decorated model."""
    def decorator ( cls ) :
        cls.__xml_root__ = ( name, namespace )
        return cls
    return decorator

class Envelope ( object ) :
    r"""A value together with the identity of the root element it is written as."""
    __slots__ = ( 'name', 'value', 'namespace' )
    def __init__ ( self, name, value, namespace = None ) :
        self.name = name
        self.value = value
        self.namespace = namespace
    def __eq__ ( self, other ) :
        return isinstance( other, Envelope ) and ( self.name, self.namespace, self.value ) == ( other.name, other.namespace, other.value )
    def __repr__ ( self ) :
        return "<Envelope:%s=%r>" % ( qualify( self.namespace, self.name ), self.value )

def qualify ( namespace, name ) :
    return "{%s}%s" % ( namespace, name ) if namespace else name

def local_name ( tag ) :
    return tag.rsplit( '}', 1 )[-1]

# lexical forms of simple values.  Enum members are reduced to their value before lookup.
def _float ( value ) :
    if value != value :
        return "NaN"
    if value in ( float( 'inf' ), float( '-inf' ) ) :
        return "INF" if value > 0 else "-INF"
    return repr( value )

formatters = { str : str, bool : lambda v : "true" if v else "false", int : str, float : _float
    , Decimal : str, datetime : datetime.isoformat, date : date.isoformat
    , XmlCalendar : XmlCalendar.to_xml_format }

def to_lexical ( value ) :
    if isinstance( value, enum.Enum ) :
        value = value.value
    for kind in getmro( type( value ) ) :
        if kind in formatters :
            text = formatters[kind]( value )
            break
    else :
        raise MarshalError( "'%s' has no XML representation." % type( value ).__name__ )
    illegal = ILLEGAL_CHARS.search( text )
    if illegal :
        raise MarshalError( "%r cannot appear in an XML document." % illegal.group() )
    return text

def content ( element ) :
    r"""The character content of ``element``.  Only elements with children carry indentation,
    so leaf content is returned exactly as written."""
    text = element.text or ""
    return text.strip() if len( element ) else text

def is_simple ( kind ) :
    return isinstance( kind, type ) and ( issubclass( kind, enum.Enum ) or any( issubclass( kind, f ) for f in formatters ) )

def is_model ( kind ) :
    return isinstance( kind, type ) and issubclass( kind, BaseModel )

class FieldBinding ( object ) :
    __slots__ = ( 'field', 'key', 'node', 'name', 'kind', 'repeated' )
    def __init__ ( self, **kwargs ) :
        for k, v in kwargs.items() :
            setattr( self, k, v )
    def __repr__ ( self ) :
        return "<FieldBinding:" + ",".join( slot + "=" + str( getattr( self, slot ) ) for slot in self.__slots__ ) + ">"

class ModelBinding ( object ) :
    r"""The attribute, element and text bindings of a single model type."""
    def __init__ ( self, kind ) :
        self.kind = kind
        self.root = getattr( kind, '__xml_root__', None )
        self.attributes = []
        self.elements = []
        self.text = None

    def encode ( self, entity, element, context ) :
        for binding in self.attributes :
            value = getattr( entity, binding.field )
            if value is not None :
                element.set( binding.name, to_lexical( value ) )
        if self.text is not None :
            value = getattr( entity, self.text.field )
            if value is not None :
                element.text = to_lexical( value )
        for binding in self.elements :
            value = getattr( entity, binding.field )
            if value is None :
                continue
            for item in ( value if binding.repeated else [ value ] ) :
                child = ET.SubElement( element, binding.name )
                if is_model( binding.kind ) :
                    context.binding_for( binding.kind ).encode( item, child, context )
                else :
                    child.text = to_lexical( item )
        return element

    def decode ( self, element, context ) :
        r"""Collects the raw (lexical) content of ``element`` into a dict pydantic can validate."""
        data = {}
        for binding in self.attributes :
            if binding.name in element.attrib :
                data[binding.key] = element.attrib[binding.name]
        if self.text is not None and element.text is not None :
            data[self.text.key] = content( element )
        by_name = dict( ( binding.name, binding ) for binding in self.elements )
        for child in element :
            if not isinstance( child.tag, str ) :
                continue # comments and processing instructions
            binding = by_name.get( local_name( child.tag ) )
            if binding is None :
                continue
            if is_model( binding.kind ) :
                value = context.binding_for( binding.kind ).decode( child, context )
            else :
                value = content( child )
            if binding.repeated :
                data.setdefault( binding.key, [] ).append( value )
            else :
                data[binding.key] = value
        return data

class BindingContext ( object ) :
    r"""Field tables for one model type and every model type reachable from it."""
    def __init__ ( self, kind ) :
        self.kind = kind
        self.bindings = {}
        self._bind( kind )

    @classmethod
    def new_instance ( cls, kind ) :
        if not is_model( kind ) :
            raise ContextError( "%r is not a bindable model type." % ( kind, ) )
        context = cls( kind )
        log.debug( "binding context for %s covers %d type(s)", kind.__name__, len( context.bindings ) )
        return context

    def binding_for ( self, kind ) :
        try :
            return self.bindings[kind]
        except KeyError :
            raise ContextError( "%s is not known to this context." % kind.__name__ ) from None

    def create_marshaller ( self, **kwargs ) :
        return Marshaller( self, **kwargs )

    def create_unmarshaller ( self ) :
        return Unmarshaller( self )

    def _bind ( self, kind ) :
        if kind in self.bindings :
            return
        model = self.bindings[kind] = ModelBinding( kind )
        for field, info in kind.model_fields.items() :
            node = self._node( info.metadata )
            kind_of_field, repeated = self._resolve( kind, field, info.annotation )
            binding = FieldBinding( field = field, key = info.alias or field, node = node
                , name = node.name or info.alias or field, kind = kind_of_field, repeated = repeated )
            if isinstance( node, Element ) :
                if is_model( kind_of_field ) :
                    self._bind( kind_of_field )
                model.elements.append( binding )
                continue
            if repeated or not is_simple( kind_of_field ) :
                raise ContextError( "%s.%s: %r needs a simple, non-repeated type." % ( kind.__name__, field, node ) )
            if isinstance( node, Attribute ) :
                model.attributes.append( binding )
            elif model.text is not None :
                raise ContextError( "%s declares more than one Text() field." % kind.__name__ )
            else :
                model.text = binding

    def _node ( self, metadata ) :
        for item in metadata :
            if isinstance( item, ( Attribute, Element, Text ) ) :
                return item
        return Element()

    def _resolve ( self, owner, field, annotation ) :
        r"""Reduces ``annotation`` to ( item type, repeated )."""
        origin = typing.get_origin( annotation )
        args = [ arg for arg in typing.get_args( annotation ) if arg is not type( None ) ]
        if origin is typing.Annotated :
            return self._resolve( owner, field, args[0] )
        if origin in ( typing.Union, types.UnionType ) and len( args ) == 1 :
            return self._resolve( owner, field, args[0] )
        if origin in ( list, tuple ) and args :
            kind, repeated = self._resolve( owner, field, args[0] )
            if not repeated :
                return kind, True
        elif is_model( annotation ) or is_simple( annotation ) :
            return annotation, False
        raise ContextError( "%s.%s: unsupported field type %r." % ( owner.__name__, field, annotation ) )

class Marshaller ( object ) :
    def __init__ ( self, context, formatted_output = False, xml_headers = None, indent = "    ", encoding = "UTF-8" ) :
        self.context = context
        self.formatted_output = formatted_output
        self.xml_headers = xml_headers
        self.indent = indent
        self.encoding = encoding

    def marshal_tree ( self, entity ) :
        if isinstance( entity, Envelope ) :
            name, namespace, value = entity.name, entity.namespace, entity.value
        else :
            value = entity
            root = getattr( type( entity ), '__xml_root__', None )
            if root is None :
                raise MarshalError( "%s declares no root element; wrap it in an Envelope." % type( entity ).__name__ )
            name, namespace = root
        binding = self.context.binding_for( type( value ) )
        try :
            value = binding.kind.model_validate( value.model_dump( by_alias = True ) )
        except ValidationError as err :
            raise MarshalError( "%s failed validation: %s" % ( binding.kind.__name__, err ) ) from err
        # tags stay unqualified; the namespace is declared as the document default on the root.
        root = ET.Element( name, { 'xmlns' : namespace } if namespace else {} )
        return binding.encode( value, root, self.context )

    def marshal ( self, entity ) :
        r"""Returns the XML document for ``entity`` (a model instance or an ``Envelope``) as text."""
        root = self.marshal_tree( entity )
        if self.formatted_output :
            ET.indent( root, space = self.indent )
        try :
            body = ET.tostring( root, encoding = 'unicode' )
        except ( TypeError, ValueError ) as err :
            raise MarshalError( "cannot serialize <%s>: %s" % ( root.tag, err ) ) from err
        if self.xml_headers :
            prologue = self.xml_headers.rstrip( "\r\n" )
            if codecs.lookup( self.encoding ).name not in SELF_DESCRIBING :
                prologue = XML_DECLARATION % self.encoding + "\n" + prologue
        else :
            prologue = XML_DECLARATION % self.encoding
        return prologue + "\n" + body + "\n"

class Unmarshaller ( object ) :
    def __init__ ( self, context ) :
        self.context = context

    def unmarshal ( self, stream, expected_type = None ) :
        r"""Reads an XML document from the binary stream ``stream`` and returns an ``Envelope``
        around the ``expected_type`` instance it holds."""
        kind = expected_type or self.context.kind
        binding = self.context.binding_for( kind )
        try :
            root = ET.parse( stream ).getroot()
        except ET.ParseError as err :
            raise UnmarshalError( "not a well-formed XML document: %s" % err ) from err
        namespace = root.tag[1:].split( '}', 1 )[0] if root.tag.startswith( '{' ) else None
        name = local_name( root.tag )
        if binding.root is not None and ( binding.root[0] != name or ( binding.root[1] or None ) != namespace ) :
            raise UnmarshalError( "unexpected root element %s, expected %s" % ( root.tag, qualify( binding.root[1], binding.root[0] ) ) )
        try :
            value = kind.model_validate( binding.decode( root, self.context ) )
        except ValidationError as err :
            raise UnmarshalError( "<%s> does not match %s: %s" % ( name, kind.__name__, err ) ) from err
        return Envelope( name, value, namespace )
