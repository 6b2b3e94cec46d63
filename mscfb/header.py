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

import logging
import warnings

from .errors import (
    CompoundFileInvalidMagicError,
    CompoundFileSectorSizeError,
    CompoundFileMiniConfigError,
    CompoundFileHeaderWarning,
    )
from .const import (
    COMPOUND_MAGIC,
    COMPOUND_HEADER,
    COMPOUND_DIFAT,
    HEADER_SIZE,
    SECTOR_SIZES,
    MINI_SECTOR_SHIFT,
    MINI_STREAM_CUTOFF,
    BYTE_ORDER_MARK,
    )


logger = logging.getLogger(__name__)


class CompoundFileHeader(object):
    """
    Decodes the 512-byte header at the start of a compound document.

    The *data* given should be the first 512 bytes of the file. If fewer are
    provided the remainder is treated as zeros, which means a truncated (or
    empty) file fails the signature check rather than a struct error.

    Fatal problems raise :exc:`CompoundFileInvalidMagicError`,
    :exc:`CompoundFileSectorSizeError`, or :exc:`CompoundFileMiniConfigError`.
    Everything else that looks strange is reported as a
    :exc:`CompoundFileHeaderWarning`.

    .. attribute:: sector_size

        The size of a normal sector in bytes (512 or 4096).

    .. attribute:: mini_sector_size

        The size of a mini-sector in bytes (always 64).

    .. attribute:: difat

        A tuple of the 109 DIFAT entries stored in the header itself.
    """

    def __init__(self, data):
        super(CompoundFileHeader, self).__init__()
        data = bytes(data[:HEADER_SIZE]).ljust(HEADER_SIZE, b'\0')
        (
            magic,
            self.clsid,
            self.minor_version,
            self.major_version,
            self.byte_order,
            self.sector_shift,
            self.mini_sector_shift,
            unused,
            self.dir_sector_count,
            self.normal_sector_count,
            self.dir_first_sector,
            self.txn_signature,
            self.mini_size_limit,
            self.mini_first_sector,
            self.mini_sector_count,
            self.master_first_sector,
            self.master_sector_count,
        ) = COMPOUND_HEADER.unpack(data[:COMPOUND_HEADER.size])
        self.difat = COMPOUND_DIFAT.unpack(
                data[COMPOUND_HEADER.size:COMPOUND_HEADER.size + COMPOUND_DIFAT.size])

        if magic != COMPOUND_MAGIC:
            raise CompoundFileInvalidMagicError(
                    'invalid signature %r; not an OLE compound '
                    'document' % magic)
        try:
            self.sector_size = SECTOR_SIZES[self.sector_shift]
        except KeyError:
            raise CompoundFileSectorSizeError(
                    'invalid sector shift (%d)' % self.sector_shift) from None
        if self.mini_sector_shift != MINI_SECTOR_SHIFT:
            raise CompoundFileMiniConfigError(
                    'invalid mini sector shift '
                    '(%d)' % self.mini_sector_shift)
        if self.mini_size_limit != MINI_STREAM_CUTOFF:
            raise CompoundFileMiniConfigError(
                    'invalid mini stream cutoff '
                    '(%d)' % self.mini_size_limit)
        self.mini_sector_size = 1 << self.mini_sector_shift

        # Nothing below stops us reading the file
        if self.byte_order != BYTE_ORDER_MARK:
            warnings.warn(
                    'unexpected byte order mark '
                    '(%#06x)' % self.byte_order, CompoundFileHeaderWarning)
        if self.major_version == 3:
            if self.sector_size != 512:
                warnings.warn(
                        'unexpected sector size in v3 file '
                        '(%d)' % self.sector_size, CompoundFileHeaderWarning)
            if self.dir_sector_count != 0:
                warnings.warn(
                        'directory chain sector count is non-zero '
                        '(%d)' % self.dir_sector_count,
                        CompoundFileHeaderWarning)
        elif self.major_version == 4:
            if self.sector_size != 4096:
                warnings.warn(
                        'unexpected sector size in v4 file '
                        '(%d)' % self.sector_size, CompoundFileHeaderWarning)
        else:
            warnings.warn(
                    'unsupported major version '
                    '(%d)' % self.major_version, CompoundFileHeaderWarning)
        logger.debug(
                'header: version %d.%d, %d byte sectors, %d FAT sectors',
                self.major_version, self.minor_version, self.sector_size,
                self.normal_sector_count)

    def __repr__(self):
        return (
            '<CompoundFileHeader version=%d.%d sector_size=%d>' % (
                self.major_version, self.minor_version, self.sector_size))
