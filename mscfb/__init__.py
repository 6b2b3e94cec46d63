#!/usr/bin/env python3
# vim: set et sw=4 sts=4 fileencoding=utf-8:
#
# A library for reading Microsoft's OLE Compound Document format
# Copyright (c) 2014 Dave Hughes <dave@waveform.org.uk>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
A read-only decoder for Microsoft's `Compound File Binary`_ format (also known
as OLE2 or OLE Compound Documents), the container used by legacy Office
documents, MSI installers, Outlook MSG files and many forensic artifacts.

.. _Compound File Binary: https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-cfb


CompoundFileReader
==================

.. autoclass:: CompoundFileReader
    :members:


CompoundFileEntity
==================

.. autoclass:: CompoundFileEntity
    :members:


Streams
=======

.. autoclass:: CompoundFileStream
    :members:

.. autoclass:: CompoundFileNormalStream

.. autoclass:: CompoundFileMiniStream

.. autoclass:: CompoundFileBufferStream


Byte sources
============

.. automodule:: mscfb.sources
    :members:


Exceptions
==========

.. autoexception:: CompoundFileError

.. autoexception:: CompoundFileWarning

"""

from .errors import (
    CompoundFileError,
    CompoundFileInvalidMagicError,
    CompoundFileSectorSizeError,
    CompoundFileMiniConfigError,
    CompoundFileMasterLoopError,
    CompoundFileTruncatedFatError,
    CompoundFileChainError,
    CompoundFileNormalFatBoundsError,
    CompoundFileNormalFatLoopError,
    CompoundFileMiniFatBoundsError,
    CompoundFileMiniFatLoopError,
    CompoundFileDirectoryIndexError,
    CompoundFileNotFoundError,
    CompoundFileIOError,
    CompoundFileWarning,
    CompoundFileHeaderWarning,
    CompoundFileMasterFatWarning,
    CompoundFileMiniFatWarning,
    CompoundFileChainWarning,
    CompoundFileDirEntryWarning,
    )
from .header import CompoundFileHeader
from .entities import (
    CompoundFileEntity,
    filetime_to_unix,
    unix_to_filetime,
    )
from .streams import (
    CompoundFileStream,
    CompoundFileChainStream,
    CompoundFileNormalStream,
    CompoundFileMiniStream,
    CompoundFileBufferStream,
    )
from .sources import (
    BytesSource,
    MmapSource,
    FileSource,
    PagedSource,
    OffsetSource,
    )
from .reader import CompoundFileReader
from . import const


__all__ = [
    'CompoundFileError',
    'CompoundFileWarning',
    'CompoundFileReader',
    'CompoundFileEntity',
    'CompoundFileStream',
    'CompoundFileNormalStream',
    'CompoundFileMiniStream',
    'CompoundFileBufferStream',
    ]
