#!/usr/bin/env python
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
Exceptions and warnings raised while decoding compound documents.

Anything that makes a file unreadable is raised as a subclass of
:exc:`CompoundFileError`. Oddities which the reader can work around are
reported via the :mod:`warnings` module as subclasses of
:exc:`CompoundFileWarning`, so callers can decide for themselves (with
:func:`warnings.simplefilter`) whether they should be fatal.
"""


class CompoundFileError(IOError):
    """
    Base class for exceptions arising from reading compound documents.
    """


class CompoundFileInvalidMagicError(CompoundFileError):
    """
    Error raised when a compound document has an invalid magic number.
    """


class CompoundFileSectorSizeError(CompoundFileError):
    """
    Error raised when the header declares a sector size other than 512 or
    4096 bytes.
    """


class CompoundFileMiniConfigError(CompoundFileError):
    """
    Error raised when the mini-sector size is not 64 bytes or the mini-stream
    cutoff is not 4096 bytes.
    """


class CompoundFileMasterLoopError(CompoundFileError):
    """
    Error raised when a loop is detected in the DIFAT (master-FAT).
    """


class CompoundFileTruncatedFatError(CompoundFileError):
    """
    Error raised when a sector of the FAT cannot be read in full.
    """


class CompoundFileChainError(CompoundFileError):
    """
    Base class for errors encountered while following a sector chain. The
    :attr:`chain` attribute holds the sectors collected before the failure.
    """

    def __init__(self, message, chain=()):
        super(CompoundFileChainError, self).__init__(message)
        self.chain = list(chain)


class CompoundFileNormalFatBoundsError(CompoundFileChainError):
    """
    Error raised when a chain refers to a sector beyond the end of the FAT.
    """


class CompoundFileNormalFatLoopError(CompoundFileChainError):
    """
    Error raised when a cycle is found in a FAT chain.
    """


class CompoundFileMiniFatBoundsError(CompoundFileChainError):
    """
    Error raised when a chain refers to a mini-sector beyond the end of the
    mini-FAT.
    """


class CompoundFileMiniFatLoopError(CompoundFileChainError):
    """
    Error raised when a cycle is found in a mini-FAT chain.
    """


class CompoundFileDirectoryIndexError(CompoundFileError):
    """
    Error raised when a directory entry is requested by an invalid index.
    """


class CompoundFileNotFoundError(CompoundFileError):
    """
    Error raised when no directory entry has the requested name.
    """


class CompoundFileIOError(CompoundFileError):
    """
    Error raised when the underlying byte source fails.
    """


class CompoundFileWarning(Warning):
    """
    Base class for warnings arising from reading compound documents.
    """


class CompoundFileHeaderWarning(CompoundFileWarning):
    """
    Warning about values in the compound file header.
    """


class CompoundFileMasterFatWarning(CompoundFileWarning):
    """
    Warning about values in the DIFAT (master-FAT).
    """


class CompoundFileMiniFatWarning(CompoundFileWarning):
    """
    Warning about the mini-FAT.
    """


class CompoundFileChainWarning(CompoundFileWarning):
    """
    Warning raised when a sector chain is truncated at the chain length limit.
    """


class CompoundFileDirEntryWarning(CompoundFileWarning):
    """
    Warning about invalid values in a directory entry.
    """
