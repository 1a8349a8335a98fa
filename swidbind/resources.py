#    swidbind/resources.py - named resource lookup.
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
r"""Resolves resource names such as ``"tags/product.swidtag"`` to open binary streams.

Each of the anchor ``packages`` is searched first (through :mod:`importlib.resources`, so
resources inside zipped packages are found too), then every directory on ``sys.path``.
A name that cannot be resolved gives ``None``; the caller decides what that means.
"""
import logging, os, sys
from importlib import resources

__all__ = [ 'open_resource' ]

log = logging.getLogger( "swidbind.resources" )

def _parts ( name ) :
    return [ part for part in name.replace( "\\", "/" ).split( "/" ) if part and part != "." ]

def _from_package ( package, parts ) :
    try :
        target = resources.files( package ).joinpath( *parts )
    except ( ModuleNotFoundError, TypeError ) :
        log.warning( "resource package %r cannot be imported", package )
        return None
    if target.is_file() :
        return target.open( "rb" )
    return None

def _from_path ( parts ) :
    for entry in sys.path :
        candidate = os.path.join( entry or os.curdir, *parts )
        if os.path.isfile( candidate ) :
            return open( candidate, "rb" )
    return None

def open_resource ( name, packages = () ) :
    r"""Returns a binary stream for resource ``name`` (owned by the caller), or ``None``."""
    parts = _parts( name )
    if not parts or ".." in parts :
        return None
    for package in packages :
        stream = _from_package( package, parts )
        if stream is not None :
            log.debug( "resource %s found in package %s", name, package )
            return stream
    return _from_path( parts )
