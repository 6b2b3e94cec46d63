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

import io

from .sources import read_source


class CompoundFileStream(io.RawIOBase):
    """
    Abstract base class for streams within an OLE Compound Document.

    Instances of :class:`CompoundFileStream` are not constructed directly,
    but are returned by the methods of :class:`CompoundFileReader`. They
    support all common methods associated with read-only streams
    (:meth:`read`, :meth:`readinto`, :meth:`seek`, :meth:`tell`, and so forth)
    and additionally provide positional reads via :meth:`read_at` and
    :meth:`readinto_at` which neither use nor move the stream position.

    As positional reads carry no state, a stream can itself act as the byte
    source for another stream; this is how mini-streams are layered on top of
    the root entry's stream.

    .. attribute:: size

        The logical length of the stream in bytes. Reads never extend past
        this point.
    """

    def __init__(self, size):
        super(CompoundFileStream, self).__init__()
        self.size = size
        self._pos = 0

    def readinto_at(self, buf, offset):
        """
        Read up to ``len(buf)`` bytes starting at *offset* into the writable
        buffer *buf*, returning the number of bytes read. Zero indicates the
        end of the stream.
        """
        raise NotImplementedError

    def read_at(self, offset, size=-1):
        """
        Return up to *size* bytes starting at *offset* (the rest of the stream
        if *size* is negative). An empty result indicates the end of the
        stream.
        """
        if offset < 0:
            raise ValueError('offset must be non-negative')
        available = max(0, self.size - offset)
        if size < 0:
            size = available
        buf = bytearray(min(size, available))
        n = self.readinto_at(buf, offset)
        del buf[n:]
        return bytes(buf)

    def readable(self):
        """
        Returns ``True``, indicating that the stream supports :meth:`read`.
        """
        return True

    def writable(self):
        """
        Returns ``False``, indicating that the stream doesn't support
        :meth:`write` or :meth:`truncate`.
        """
        return False

    def seekable(self):
        """
        Returns ``True``, indicating that the stream supports :meth:`seek`.
        """
        return True

    def tell(self):
        """
        Return the current stream position.
        """
        return self._pos

    def seek(self, offset, whence=io.SEEK_SET):
        """
        Change the stream position to the given byte *offset*. *offset* is
        interpreted relative to the position indicated by *whence*. Values for
        *whence* are:

        * ``SEEK_SET`` or ``0`` - start of the stream (the default); *offset*
          should be zero or positive

        * ``SEEK_CUR`` or ``1`` - current stream position; *offset* may be
          negative

        * ``SEEK_END`` or ``2`` - end of the stream; *offset* is usually
          negative

        Return the new absolute position.
        """
        if whence == io.SEEK_CUR:
            offset = self._pos + offset
        elif whence == io.SEEK_END:
            offset = self.size + offset
        elif whence != io.SEEK_SET:
            raise ValueError('invalid whence (%r)' % whence)
        if offset < 0:
            raise ValueError(
                    'New position is before the start of the stream')
        self._pos = offset
        return offset

    def readinto(self, b):
        """
        Read bytes from the current position into the pre-allocated writable
        buffer *b*, returning the number of bytes read (0 at the end of the
        stream).
        """
        if self.closed:
            raise ValueError('I/O operation on closed stream')
        n = self.readinto_at(b, self._pos)
        self._pos += n
        return n


class CompoundFileChainStream(CompoundFileStream):
    """
    A stream stored as a chain of equally sized sectors within *source*.

    *sectors* is the resolved chain, *sector_size* the size of each sector,
    and *size* the logical length of the stream. Sector *n* of the chain is
    found at ``base_offset + sector_size * n`` within *source*.
    """

    def __init__(self, source, sectors, sector_size, size, base_offset=0):
        super(CompoundFileChainStream, self).__init__(size)
        self._source = source
        self._sectors = list(sectors)
        self._sector_size = sector_size
        self._base_offset = base_offset

    @property
    def sectors(self):
        """
        The chain of sectors occupied by the stream, as a tuple.
        """
        return tuple(self._sectors)

    @property
    def sector_size(self):
        return self._sector_size

    def readinto_at(self, buf, offset):
        if offset < 0:
            raise ValueError('offset must be non-negative')
        sector_index, sector_offset = divmod(offset, self._sector_size)
        if offset >= self.size or sector_index >= len(self._sectors):
            return 0
        view = memoryview(buf).cast('B')
        buf_offset = 0
        while buf_offset < len(view) and sector_index < len(self._sectors):
            to_read = min(
                self._sector_size - sector_offset,
                len(view) - buf_offset,
                self.size - (offset + buf_offset),
                )
            if to_read <= 0:
                break
            data = read_source(
                self._source,
                self._base_offset +
                self._sector_size * self._sectors[sector_index] +
                sector_offset, to_read)
            view[buf_offset:buf_offset + len(data)] = data
            buf_offset += len(data)
            if len(data) < to_read:
                # The source ran out before the chain did
                break
            sector_index += 1
            sector_offset = 0
        return buf_offset

    def __repr__(self):
        return '<%s size=%d sectors=%d>' % (
            self.__class__.__name__, self.size, len(self._sectors))


class CompoundFileNormalStream(CompoundFileChainStream):
    """
    A stream stored in normal sectors of the file. Sectors are numbered from
    the end of the header, so sector *n* lives at ``(n + 1) * sector_size``.

    The stream's size is *size* or the total length of the chain, whichever
    is smaller (the total length of the chain if *size* is ``None``).
    """

    def __init__(self, source, sectors, sector_size, size=None):
        max_length = len(sectors) * sector_size
        if size is None:
            size = max_length
        super(CompoundFileNormalStream, self).__init__(
                source, sectors, sector_size, min(size, max_length),
                base_offset=sector_size)


class CompoundFileMiniStream(CompoundFileChainStream):
    """
    A stream stored in mini-sectors of the mini-stream. *ministream* is the
    stream (normally a :class:`CompoundFileNormalStream` over the root
    entry) carved into mini-sectors, so mini-sector *n* lives at
    ``n * mini_sector_size`` within it.
    """

    def __init__(self, ministream, sectors, mini_sector_size, size=None):
        max_length = len(sectors) * mini_sector_size
        if size is None:
            size = max_length
        super(CompoundFileMiniStream, self).__init__(
                ministream, sectors, mini_sector_size, min(size, max_length),
                base_offset=0)


class CompoundFileBufferStream(CompoundFileStream):
    """
    A stream whose content has already been read into memory.
    """

    def __init__(self, data):
        super(CompoundFileBufferStream, self).__init__(len(data))
        self._data = bytes(data)

    def readinto_at(self, buf, offset):
        if offset < 0:
            raise ValueError('offset must be non-negative')
        view = memoryview(buf).cast('B')
        data = self._data[offset:offset + len(view)]
        view[:len(data)] = data
        return len(data)

    def __repr__(self):
        return '<CompoundFileBufferStream size=%d>' % self.size
