#    swidbind/exceptions.py - errors raised by the swidbind entry points.
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
r"""Errors raised by :mod:`swidbind.XML`.  Each carries the exception that caused it in
``cause`` (and in ``__cause__``, since it is always raised ``from`` that exception)."""

__all__ = [ 'SwidError', 'BindingError', 'UnsupportedDestinationError', 'DateConversionError' ]

class SwidError ( Exception ) :
    def __init__ ( self, message, cause = None ) :
        Exception.__init__( self, message )
        self.message = message
        self.cause = cause

    def __str__ ( self ) :
        if self.cause is None :
            return self.message
        return "%s (%s: %s)" % ( self.message, type( self.cause ).__name__, self.cause )

class BindingError ( SwidError ) :
    r"""Reading or writing a document failed, or no binding context could be built for the type."""

class UnsupportedDestinationError ( SwidError, TypeError ) :
    r"""The write destination is not a byte stream, a path or a character stream."""

class DateConversionError ( SwidError ) :
    pass
