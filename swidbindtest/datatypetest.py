#!/usr/bin/env python
#    swidbindtest/datatypetest.py - test cases for swidbind datatypes
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
import os, time, unittest
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest import mock

from pydantic import BaseModel, ValidationError

from swidbind.XML import convert_date_to_calendar
from swidbind.datatype import XmlCalendar, new_calendar
from swidbind.exceptions import DateConversionError

FIELDS = ( 2024, 3, 15, 10, 30, 45, 500 )

@contextmanager
def local_zone ( name ) :
    try :
        with mock.patch.dict( os.environ, { "TZ" : name } ) :
            time.tzset()
            yield
    finally :
        time.tzset()

def fields ( cal ) :
    return ( cal.year, cal.month, cal.day, cal.hour, cal.minute, cal.second, cal.millisecond )

class ConversionTests ( unittest.TestCase ) :
    def testNaiveDate ( self ) :
        cal = convert_date_to_calendar( datetime( 2024, 3, 15, 10, 30, 45, 500000 ) )
        self.assertEqual( fields( cal ), FIELDS )
        self.assertEqual( cal.timezone, 0 )

    def testMillisecondsTruncated ( self ) :
        self.assertEqual( convert_date_to_calendar( datetime( 2024, 3, 15, 10, 30, 45, 999999 ) ).millisecond, 999 )

    @unittest.skipUnless( hasattr( time, "tzset" ), "time.tzset() needed" )
    def testNaiveDateIgnoresZone ( self ) :
        for zone in ( "UTC", "America/New_York", "Asia/Kolkata" ) :
            with local_zone( zone ) :
                cal = convert_date_to_calendar( datetime( 2024, 3, 15, 10, 30, 45, 500000 ) )
            self.assertEqual( fields( cal ), FIELDS, zone )
            self.assertEqual( cal.timezone, 0, zone )

    @unittest.skipUnless( hasattr( time, "tzset" ), "time.tzset() needed" )
    def testTimestampUsesLocalFields ( self ) :
        instant = datetime( 2024, 3, 15, 10, 30, 45, 500000, tzinfo = timezone.utc ).timestamp()
        with local_zone( "UTC" ) :
            utc = convert_date_to_calendar( instant )
        with local_zone( "Asia/Tokyo" ) :
            tokyo = convert_date_to_calendar( instant )
        self.assertEqual( fields( utc ), FIELDS )
        self.assertEqual( fields( tokyo ), ( 2024, 3, 15, 19, 30, 45, 500 ) )
        # local fields, zero offset, in both cases
        self.assertEqual( ( utc.timezone, tokyo.timezone ), ( 0, 0 ) )

    @unittest.skipUnless( hasattr( time, "tzset" ), "time.tzset() needed" )
    def testAwareDateConvertedToLocal ( self ) :
        moment = datetime( 2024, 3, 15, 10, 30, 45, 500000, tzinfo = timezone( timedelta( hours = -5 ) ) )
        with local_zone( "UTC" ) :
            cal = convert_date_to_calendar( moment )
        self.assertEqual( fields( cal ), ( 2024, 3, 15, 15, 30, 45, 500 ) )
        self.assertEqual( cal.to_xml_format(), "2024-03-15T15:30:45.500Z" )

    def testUnconvertible ( self ) :
        for value in ( "2024-03-15", None, True, 1e300 ) :
            with self.assertRaises( DateConversionError, msg = repr( value ) ) as caught :
                convert_date_to_calendar( value )
            self.assertIsNotNone( caught.exception.cause )

class CalendarTests ( unittest.TestCase ) :
    def testLexical ( self ) :
        self.assertEqual( XmlCalendar( *FIELDS, timezone = 0 ).to_xml_format(), "2024-03-15T10:30:45.500Z" )
        self.assertEqual( XmlCalendar( *FIELDS, timezone = 90 ).to_xml_format(), "2024-03-15T10:30:45.500+01:30" )
        self.assertEqual( XmlCalendar( *FIELDS, timezone = -300 ).to_xml_format(), "2024-03-15T10:30:45.500-05:00" )
        self.assertEqual( XmlCalendar( *FIELDS ).to_xml_format(), "2024-03-15T10:30:45.500" )
        self.assertEqual( str( XmlCalendar( 987, 1, 2 ) ), "0987-01-02T00:00:00.000" )

    def testParse ( self ) :
        self.assertEqual( XmlCalendar.from_xml_format( "2024-03-15T10:30:45.500Z" ), XmlCalendar( *FIELDS, timezone = 0 ) )
        self.assertEqual( XmlCalendar.from_xml_format( "2024-03-15T10:30:45.5-05:00" ), XmlCalendar( *FIELDS, timezone = -300 ) )
        self.assertEqual( XmlCalendar.from_xml_format( "2024-03-15T10:30:45" ).millisecond, 0 )
        self.assertIsNone( XmlCalendar.from_xml_format( "2024-03-15T10:30:45" ).timezone )
        for text in ( "2024-03-15", "2024-13-15T10:30:45Z", "2024-02-30T10:30:45Z", "yesterday", "2024-03-15T25:00:00Z" ) :
            with self.assertRaises( ValueError, msg = text ) :
                XmlCalendar.from_xml_format( text )

    def testEndOfDay ( self ) :
        self.assertEqual( XmlCalendar.from_xml_format( "2024-12-31T24:00:00Z" ), XmlCalendar( 2025, 1, 1, timezone = 0 ) )
        self.assertEqual( XmlCalendar.from_xml_format( "2024-02-28T24:00:00.000+01:00" ), XmlCalendar( 2024, 2, 29, timezone = 60 ) )
        for text in ( "2024-03-15T24:00:01Z", "2024-03-15T24:30:00Z", "2024-03-15T24:00:00.5Z", "9999-12-31T24:00:00Z" ) :
            with self.assertRaises( ValueError, msg = text ) :
                XmlCalendar.from_xml_format( text )

    def testFractionTruncated ( self ) :
        self.assertEqual( XmlCalendar.from_xml_format( "2024-03-15T10:30:45.500999Z" ), XmlCalendar( *FIELDS, timezone = 0 ) )

    def testRanges ( self ) :
        for args in ( ( 2024, 0, 1 ), ( 2023, 2, 29 ), ( 2024, 1, 1, 24 ), ( 2024, 1, 1, 0, 60 ), ( 2024, 1, 1, 0, 0, 0, 1000 )
                , ( 2024, 1, 1, 0, 0, 0, 0, 15 * 60 ) ) :
            with self.assertRaises( ValueError, msg = repr( args ) ) :
                XmlCalendar( *args )
        self.assertEqual( XmlCalendar( 2024, 2, 29 ).day, 29 )

    def testValueSemantics ( self ) :
        a = new_calendar( *FIELDS, 0 )
        b = XmlCalendar( *FIELDS, timezone = 0 )
        self.assertEqual( a, b )
        self.assertEqual( hash( a ), hash( b ) )
        self.assertNotEqual( a, XmlCalendar( *FIELDS ) )
        with self.assertRaises( AttributeError ) :
            a.year = 2025

    def testToDatetime ( self ) :
        self.assertEqual( XmlCalendar( *FIELDS, timezone = 0 ).to_datetime()
            , datetime( 2024, 3, 15, 10, 30, 45, 500000, tzinfo = timezone.utc ) )
        self.assertIsNone( XmlCalendar( *FIELDS ).to_datetime().tzinfo )

class Stamp ( BaseModel ) :
    at : XmlCalendar

class ModelFieldTests ( unittest.TestCase ) :
    def testAcceptsInstanceAndText ( self ) :
        cal = XmlCalendar( *FIELDS, timezone = 0 )
        self.assertIs( Stamp( at = cal ).at, cal )
        self.assertEqual( Stamp( at = "2024-03-15T10:30:45.500Z" ).at, cal )

    def testRejects ( self ) :
        for value in ( "not a date", 42, None ) :
            with self.assertRaises( ValidationError ) :
                Stamp( at = value )

    def testJsonForm ( self ) :
        self.assertEqual( Stamp( at = XmlCalendar( *FIELDS, timezone = 0 ) ).model_dump( mode = "json" )
            , { "at" : "2024-03-15T10:30:45.500Z" } )

if __name__ == "__main__":
    unittest.main()
