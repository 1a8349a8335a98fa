import enum, unittest
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from swidbind import Attribute, Element, Text, xml_root
from swidbind.datatype import XmlCalendar

SWID_NS = "http://standards.iso.org/iso/19770/-2/2015/schema.xsd"

class Role ( str, enum.Enum ) :
    TAG_CREATOR = "tagCreator"
    SOFTWARE_CREATOR = "softwareCreator"
    LICENSOR = "licensor"

class Entity ( BaseModel ) :
    name : Annotated[ str, Attribute() ]
    reg_id : Annotated[ Optional[ str ], Attribute( "regid" ) ] = None
    role : Annotated[ Role, Attribute() ]

class Link ( BaseModel ) :
    href : Annotated[ str, Attribute() ]
    rel : Annotated[ str, Attribute() ]

class Meta ( BaseModel ) :
    product : Annotated[ Optional[ str ], Attribute() ] = None
    colloquial_version : Annotated[ Optional[ str ], Attribute( "colloquialVersion" ) ] = None
    revision : Annotated[ Optional[ int ], Attribute() ] = None

class Evidence ( BaseModel ) :
    date : Annotated[ Optional[ XmlCalendar ], Attribute() ] = None
    device_id : Annotated[ Optional[ str ], Attribute( "deviceId" ) ] = None

@xml_root( "SoftwareIdentity", namespace = SWID_NS )
class SoftwareIdentity ( BaseModel ) :
    name : Annotated[ str, Attribute() ]
    tag_id : Annotated[ str, Attribute( "tagId" ) ]
    version : Annotated[ str, Attribute() ] = "0.0"
    corpus : Annotated[ bool, Attribute() ] = False
    tag_version : Annotated[ int, Attribute( "tagVersion" ), Field( ge = 0 ) ] = 0
    entities : Annotated[ list[ Entity ], Element( "Entity" ) ] = []
    evidence : Annotated[ Optional[ Evidence ], Element( "Evidence" ) ] = None
    links : Annotated[ list[ Link ], Element( "Link" ) ] = []
    meta : Annotated[ list[ Meta ], Element( "Meta" ) ] = []

class Note ( BaseModel ) :
    lang : Annotated[ str, Attribute() ] = "en"
    text : Annotated[ str, Text() ]

@xml_root( "Product" )
class Product ( BaseModel ) :
    title : str
    keywords : Annotated[ list[ str ], Element( "Keyword" ) ] = []
    notes : Annotated[ list[ Note ], Element( "Note" ) ] = []

def sample_tag ( i = 1 ) :
    return SoftwareIdentity( name = "ACME Roadrunner Detector %d" % i, tag_id = "com.acme.rrd.%d" % i
        , version = "2013.%d" % i, tag_version = i
        , entities = [ Entity( name = "The ACME Corporation", reg_id = "acme.com", role = Role.TAG_CREATOR )
            , Entity( name = "Coyote Services, Inc.", role = Role.LICENSOR ) ]
        , evidence = Evidence( date = XmlCalendar( 2024, 3, 15, 10, 30, 45, 500, 0 ), device_id = "device-%d" % i )
        , links = [ Link( href = "swid:com.acme.rrd-base", rel = "patches" ) ]
        , meta = [ Meta( product = "Roadrunner Detector", colloquial_version = "2013", revision = i ) ] )

class DefaultTestCase ( unittest.TestCase ) :
    def _perform ( self, data, kind = None ) :
        kind = kind or type( data )
        result = self.unmarshal( self.marshal( data ), kind )
        self.assertIsInstance( result, kind )
        self.assertEqual( result, data )
        return result

class SwidBindTests ( DefaultTestCase ) :
    r"""Round trips through whatever ``marshal``/``unmarshal`` pair a subclass installs."""

    def testMinimal ( self ) :
        """A tag with only its required attributes"""
        self._perform( SoftwareIdentity( name = "Minimal", tag_id = "min-1" ) )

    def testFullTag ( self ) :
        """A tag with nested, repeated and optional children"""
        self._perform( sample_tag() )

    def testEscaping ( self ) :
        """Markup characters in attribute and element values"""
        self._perform( SoftwareIdentity( name = "<Tom & \"Jerry\">", tag_id = "a'b" ) )
        self._perform( Product( title = "x < y & z", keywords = [ "<tag>", "&amp;" ] ) )

    def testUnicode ( self ) :
        self._perform( SoftwareIdentity( name = "Überwachung – 監視", tag_id = "uni-1" ) )

    def testSimpleElementsAndText ( self ) :
        """Repeated simple elements and character content"""
        self._perform( Product( title = "Detector", keywords = [ "acme", "roadrunner" ]
            , notes = [ Note( text = "first" ), Note( lang = "de", text = "zweite" ) ] ) )

    def testSurroundingWhitespace ( self ) :
        """Leading and trailing whitespace in character content and attributes"""
        self._perform( Product( title = "  padded  ", keywords = [ " a ", "\tb\n" ]
            , notes = [ Note( text = " t " ), Note( lang = "de", text = "\n  zwei\n" ) ] ) )
        self._perform( SoftwareIdentity( name = " spaced ", tag_id = "ws-1" ) )

    def testEmptyLists ( self ) :
        result = self._perform( Product( title = "Empty" ) )
        self.assertEqual( result.keywords, [] )
        self.assertEqual( result.notes, [] )

    def testCalendarAttribute ( self ) :
        result = self._perform( sample_tag( 7 ) )
        self.assertEqual( result.evidence.date, XmlCalendar( 2024, 3, 15, 10, 30, 45, 500, 0 ) )
