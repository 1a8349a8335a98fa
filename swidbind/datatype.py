#    swidbind/datatype.py - XML schema datatypes for swidbind.
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
r"""swidbind/datatype.py provides ``XmlCalendar``, a calendar value that maps one-to-one onto
the ``xs:dateTime`` lexical space::

    2024-03-15T10:30:45.500Z
    2024-03-15T10:30:45.500+02:00
    2024-03-15T10:30:45          (no timezone)

The timezone is held as an offset in minutes from UTC, or ``None`` when the value carries
no timezone at all.  Unlike :class:`datetime.datetime` the value never consults the
process time zone: what is stored is what is written.

``XmlCalendar`` can be used directly as the type of a pydantic model field; it accepts
instances and lexical strings.
"""
import calendar, re
from datetime import date, datetime, timedelta, timezone as tz

from pydantic_core import core_schema

__all__ = [ 'XmlCalendar', 'new_calendar' ]

LEXICAL = re.compile( r"^(-?\d{4,})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})?$" )

class XmlCalendar ( object ) :
    __slots__ = ( 'year', 'month', 'day', 'hour', 'minute', 'second', 'millisecond', 'timezone' )

    def __init__ ( self, year, month, day, hour = 0, minute = 0, second = 0, millisecond = 0, timezone = None ) :
        if not 1 <= month <= 12 :
            raise ValueError( "month %r out of range 1..12" % ( month, ) )
        if not 1 <= day <= calendar.monthrange( year if 1 <= year <= 9999 else 2000, month )[1] :
            raise ValueError( "day %r out of range for %04d-%02d" % ( day, year, month ) )
        if not ( 0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59 ) :
            raise ValueError( "time %r:%r:%r out of range" % ( hour, minute, second ) )
        if not 0 <= millisecond <= 999 :
            raise ValueError( "millisecond %r out of range 0..999" % ( millisecond, ) )
        if timezone is not None and not -14 * 60 <= timezone <= 14 * 60 :
            raise ValueError( "timezone offset %r minutes out of range" % ( timezone, ) )
        for slot, value in zip( self.__slots__, ( year, month, day, hour, minute, second, millisecond, timezone ) ) :
            object.__setattr__( self, slot, value )

    def __setattr__ ( self, name, value ) :
        raise AttributeError( "XmlCalendar is immutable" )

    def __reduce__ ( self ) :
        return ( XmlCalendar, self._key() )

    def _key ( self ) :
        return tuple( getattr( self, slot ) for slot in self.__slots__ )

    def __eq__ ( self, other ) :
        if not isinstance( other, XmlCalendar ) :
            return NotImplemented
        return self._key() == other._key()

    def __hash__ ( self ) :
        return hash( self._key() )

    def __repr__ ( self ) :
        return "XmlCalendar(%s)" % self.to_xml_format()

    def __str__ ( self ) :
        return self.to_xml_format()

    def to_xml_format ( self ) :
        sign = "-" if self.year < 0 else ""
        text = "%s%04d-%02d-%02dT%02d:%02d:%02d.%03d" % ( sign, abs( self.year ), self.month, self.day
            , self.hour, self.minute, self.second, self.millisecond )
        if self.timezone is None :
            return text
        if self.timezone == 0 :
            return text + "Z"
        hours, minutes = divmod( abs( self.timezone ), 60 )
        return "%s%s%02d:%02d" % ( text, "-" if self.timezone < 0 else "+", hours, minutes )

    @classmethod
    def from_xml_format ( cls, text ) :
        r"""Parses the ``xs:dateTime`` lexical form.  Fractional seconds are truncated to
        milliseconds, and the end-of-day form ``24:00:00`` becomes midnight of the next day."""
        match = LEXICAL.match( text.strip() )
        if not match :
            raise ValueError( "%r is not an xs:dateTime" % ( text, ) )
        year, month, day, hour, minute, second, fraction, zone = match.groups()
        millisecond = int( ( fraction or "0" ).ljust( 3, "0" )[:3] )
        if hour == "24" :
            if ( minute, second ) != ( "00", "00" ) or int( fraction or "0" ) :
                raise ValueError( "%r: only 24:00:00 may use hour 24" % ( text, ) )
            try :
                following = date( int( year ), int( month ), int( day ) ) + timedelta( days = 1 )
            except OverflowError as err :
                raise ValueError( "%r cannot be moved to the next day" % ( text, ) ) from err
            year, month, day, hour = following.year, following.month, following.day, 0
        if zone is None :
            offset = None
        elif zone == "Z" :
            offset = 0
        else :
            offset = ( int( zone[1:3] ) * 60 + int( zone[4:6] ) ) * ( -1 if zone[0] == "-" else 1 )
        return cls( int( year ), int( month ), int( day ), int( hour ), int( minute ), int( second ), millisecond, offset )

    def to_datetime ( self ) :
        r"""Returns the equivalent :class:`datetime.datetime`; naive when no timezone is set."""
        zone = None if self.timezone is None else tz( timedelta( minutes = self.timezone ) )
        return datetime( self.year, self.month, self.day, self.hour, self.minute, self.second
            , self.millisecond * 1000, tzinfo = zone )

    @classmethod
    def _coerce ( cls, value ) :
        if isinstance( value, cls ) :
            return value
        if isinstance( value, str ) :
            return cls.from_xml_format( value )
        raise ValueError( "expected an XmlCalendar or xs:dateTime string, got %s" % type( value ).__name__ )

    @classmethod
    def __get_pydantic_core_schema__ ( cls, source, handler ) :
        return core_schema.no_info_plain_validator_function( cls._coerce
            , serialization = core_schema.plain_serializer_function_ser_schema( cls.to_xml_format, when_used = 'json' ) )

def new_calendar ( year, month, day, hour, minute, second, millisecond, timezone ) :
    r"""Factory mirroring the field-by-field constructor of the schema datatype library."""
    return XmlCalendar( year, month, day, hour, minute, second, millisecond, timezone )
