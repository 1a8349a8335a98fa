#    swidbind/XML.py - read and write bound objects as XML documents.
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
r"""swidbind/XML.py is the entry point to the :mod:`swidbind` binding layer.  It hides binding
contexts, marshallers and unmarshallers behind a handful of functions:

    read_object( resource, kind )            - read a named resource (see :mod:`swidbind.resources`)
    read_object_from_string( content, kind ) - read a document held in a string
    read_object_from_stream( stream, kind )  - read a document from a binary stream
    write_object( entity, destination, comment = None )
    write_object_to_string( entity )
    convert_date_to_calendar( date )

Those familiar with :mod:`pickle` or :mod:`json` can use ``load``, ``loads``, ``dump`` and
``dumps`` instead; they are the same functions under the usual names.

``write_object`` accepts three kinds of destination:

    - a binary stream (``io.RawIOBase`` / ``io.BufferedIOBase``): bytes are written and the stream is left open;
    - a path (``str`` or ``os.PathLike``): the file is created or truncated, then closed;
    - a text stream (``io.TextIOBase``): text is written and the stream is left open.

Other ``io.IOBase`` objects are treated as binary or text streams according to their ``mode``,
and the wrappers returned by :func:`tempfile.NamedTemporaryFile` are unwrapped.  Anything else
raises ``UnsupportedDestinationError`` before a single byte is written.  Output is always
indented.  When ``comment`` is not blank it becomes the first line of the document, in place
of the XML declaration; for encodings other than UTF-8 and UTF-16 the declaration is kept as
the first line and the comment follows it.

Every call builds its own binding context and reads settings afresh; the functions share no
state and may be called from several threads at once.  Failures surface as ``BindingError``
(or ``DateConversionError``) chained to the binding-layer exception underneath.
"""
import io, logging, os
from datetime import datetime

from swidbind import BindException, BindingContext, Envelope
from swidbind.config import BindingSettings
from swidbind.datatype import new_calendar
from swidbind.exceptions import BindingError, DateConversionError, UnsupportedDestinationError
from swidbind.resources import open_resource

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'read_object', 'read_object_from_string', 'read_object_from_stream', 'write_object'
    , 'write_object_to_string', 'convert_date_to_calendar', 'dumps', 'dump', 'loads', 'load' ]

log = logging.getLogger( "swidbind.xml" )

def read_object ( resource, expected_type ) :
    r"""Read the named ``resource`` as an instance of ``expected_type``."""
    settings = BindingSettings()
    stream = open_resource( resource, settings.resource_packages )
    if stream is None :
        log.warning( "resource %s not found", resource )
        missing = FileNotFoundError( "resource not found: %s" % resource )
        raise BindingError( "Cannot process resource.", missing ) from missing
    with stream :
        return read_object_from_stream( stream, expected_type )

def read_object_from_string ( content, expected_type ) :
    r"""Read the XML document held in ``content`` as an instance of ``expected_type``."""
    try :
        data = content.encode( BindingSettings().string_encoding )
    except UnicodeError as err :
        raise BindingError( "Cannot process resource.", err ) from err
    return read_object_from_stream( io.BytesIO( data ), expected_type )

def read_object_from_stream ( stream, expected_type ) :
    r"""Read an XML document from the binary stream ``stream`` as an instance of ``expected_type``.
    The stream belongs to the caller and is not closed."""
    if stream is None :
        missing = ValueError( "no input stream" )
        raise BindingError( "Cannot process resource.", missing ) from missing
    try :
        context = BindingContext.new_instance( expected_type )
        element = context.create_unmarshaller().unmarshal( stream, expected_type )
    except BindException as err :
        raise BindingError( "Cannot process resource.", err ) from err
    log.debug( "read <%s> as %s", element.name, expected_type.__name__ )
    return element.value

class ByteSink ( object ) :
    __slots__ = ( 'stream', )
    def __init__ ( self, stream ) :
        self.stream = stream

class PathSink ( object ) :
    __slots__ = ( 'path', )
    def __init__ ( self, path ) :
        self.path = path

class CharSink ( object ) :
    __slots__ = ( 'stream', )
    def __init__ ( self, stream ) :
        self.stream = stream

def sink_for ( destination ) :
    r"""Classifies ``destination`` as one of the sink kinds ``write_object`` understands."""
    if isinstance( destination, ( io.RawIOBase, io.BufferedIOBase ) ) :
        return ByteSink( destination )
    if isinstance( destination, ( str, os.PathLike ) ) :
        return PathSink( destination )
    if isinstance( destination, io.TextIOBase ) :
        return CharSink( destination )
    inner = getattr( destination, 'file', None )
    if isinstance( inner, io.IOBase ) and inner is not destination :
        return sink_for( inner )
    mode = getattr( destination, 'mode', None )
    if isinstance( destination, io.IOBase ) and isinstance( mode, str ) :
        return ByteSink( destination ) if 'b' in mode else CharSink( destination )
    raise UnsupportedDestinationError( "Unsupported destination."
        , TypeError( "cannot write XML to %s" % type( destination ).__name__ ) )

def write_bytes ( sink, document, encoding ) :
    sink.stream.write( document.encode( encoding, "xmlcharrefreplace" ) )
    sink.stream.flush()

def write_path ( sink, document, encoding ) :
    with open( sink.path, "wb" ) as f :
        f.write( document.encode( encoding, "xmlcharrefreplace" ) )

def write_chars ( sink, document, encoding ) :
    sink.stream.write( document )
    sink.stream.flush()

writers = { ByteSink : write_bytes, PathSink : write_path, CharSink : write_chars }

def write_object ( entity, destination, comment = None ) :
    r"""Write ``entity`` (a bound model instance or an ``Envelope``) to ``destination``, optionally
    preceded by the literal header line ``comment``."""
    sink = sink_for( destination )
    value = entity.value if isinstance( entity, Envelope ) else entity
    settings = BindingSettings()
    try :
        context = BindingContext.new_instance( type( value ) )
        marshaller = context.create_marshaller( formatted_output = True, indent = settings.indent
            , encoding = settings.string_encoding, xml_headers = comment if comment and comment.strip() else None )
        document = marshaller.marshal( entity )
    except BindException as err :
        raise BindingError( "Cannot write object.", err ) from err
    try :
        writers[type( sink )]( sink, document, settings.string_encoding )
    except ( OSError, ValueError ) as err :
        raise BindingError( "Cannot write object.", err ) from err
    log.debug( "wrote %s to %s", type( value ).__name__, type( sink ).__name__ )

def write_object_to_string ( entity ) :
    r"""Returns the XML document for ``entity`` as a string."""
    destination = io.BytesIO()
    write_object( entity, destination, None )
    return destination.getvalue().decode( BindingSettings().string_encoding )

def convert_date_to_calendar ( date ) :
    r"""Convert ``date`` (a ``datetime`` or a POSIX timestamp) to an ``XmlCalendar``.

    The calendar fields are those of ``date`` in the local time zone, yet the calendar's
    offset is always zero.
    """
    try :
        if isinstance( date, datetime ) :
            local = date.astimezone() if date.tzinfo is not None else date
        elif isinstance( date, ( int, float ) ) and not isinstance( date, bool ) :
            local = datetime.fromtimestamp( date )
        else :
            raise TypeError( "cannot convert %s to a calendar" % type( date ).__name__ )
        return new_calendar( local.year, local.month, local.day, local.hour, local.minute
            , local.second, local.microsecond // 1000, 0 )
    except ( TypeError, ValueError, OverflowError, OSError ) as err :
        raise DateConversionError( "Cannot convert date", err ) from err

load = read_object_from_stream
loads = read_object_from_string
dump = write_object
dumps = write_object_to_string
