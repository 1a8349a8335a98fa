#    swidbind/config.py - runtime settings for swidbind.
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
r"""Settings are read from ``SWIDBIND_*`` environment variables (or a ``.env`` file in the
working directory) each time an entry point in :mod:`swidbind.XML` runs::

    SWIDBIND_INDENT_WIDTH=2
    SWIDBIND_STRING_ENCODING=ISO-8859-1
    SWIDBIND_RESOURCE_PACKAGES='["myapp.tags"]'
"""
import codecs

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [ 'BindingSettings' ]

class BindingSettings ( BaseSettings ) :
    model_config = SettingsConfigDict(
        env_prefix = "SWIDBIND_",
        extra = "ignore",
        case_sensitive = False,
        env_file = ".env",
        env_file_encoding = "utf-8",
    )

    indent_width : int = Field( default = 4, ge = 0, le = 16
        , description = "Spaces per nesting level in written documents." )
    string_encoding : str = Field( default = "UTF-8", min_length = 1
        , description = "Encoding of written documents, and of str content read as a document." )
    resource_packages : list[ str ] = Field( default_factory = list
        , description = "Packages searched for named resources before sys.path." )

    @field_validator( "string_encoding" )
    @classmethod
    def _known_encoding ( cls, value ) :
        try :
            codecs.lookup( value )
        except LookupError :
            raise ValueError( "unknown encoding %r" % value ) from None
        return value

    @property
    def indent ( self ) :
        return " " * self.indent_width
