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
Random-access byte sources for :class:`~mscfb.CompoundFileReader`.

The reader only ever needs one operation from the underlying data: fetch
*size* bytes starting at an absolute *offset*. Any object with a ``read_at``
method of that shape (returning fewer bytes only when the data ends, and
raising :exc:`IOError` on failure) can be used. The classes here cover
in-memory buffers, memory-mapped files, plain file-like objects, and a paged
cache which can be stacked on top of any of them.
"""

import io
import os
import mmap
import logging
import threading
from collections import OrderedDict

from .errors import CompoundFileError, CompoundFileIOError


logger = logging.getLogger(__name__)


def read_source(source, offset, size):
    """
    Read *size* bytes at *offset* from *source*, converting any failure of the
    source into a :exc:`CompoundFileIOError`.
    """
    try:
        return source.read_at(offset, size)
    except CompoundFileError:
        raise
    except IOError as e:
        raise CompoundFileIOError(
                'failed to read %d bytes at offset %d: %s' % (
                    size, offset, e)) from e


class BytesSource(object):
    """
    Serves reads from an in-memory bytes-like object.
    """

    def __init__(self, data):
        super(BytesSource, self).__init__()
        self._data = memoryview(data).cast('B')

    def __len__(self):
        return len(self._data)

    def read_at(self, offset, size):
        if offset < 0 or size < 0:
            raise ValueError('offset and size must be non-negative')
        return self._data[offset:offset + size].tobytes()

    def close(self):
        self._data.release()


class MmapSource(object):
    """
    Serves reads from a read-only memory map of *fileobj*, which must provide
    a valid file descriptor via ``fileno``.
    """

    def __init__(self, fileobj):
        super(MmapSource, self).__init__()
        self._mmap = mmap.mmap(fileobj.fileno(), 0, access=mmap.ACCESS_READ)

    def __len__(self):
        return self._mmap.size()

    def read_at(self, offset, size):
        if offset < 0 or size < 0:
            raise ValueError('offset and size must be non-negative')
        return self._mmap[offset:offset + size]

    def close(self):
        self._mmap.close()


class FileSource(object):
    """
    Serves reads from any seekable file-like object. As the file position is
    shared state, each read seeks and reads under a lock.
    """

    def __init__(self, fileobj):
        super(FileSource, self).__init__()
        self._file = fileobj
        self._lock = threading.Lock()

    def read_at(self, offset, size):
        if offset < 0 or size < 0:
            raise ValueError('offset and size must be non-negative')
        with self._lock:
            self._file.seek(offset)
            result = b''
            while len(result) < size:
                buf = self._file.read(size - len(result))
                if not buf:
                    break
                result += buf
        return result

    def close(self):
        self._file.close()


class PagedSource(object):
    """
    Caches fixed-size pages of another source.

    Compound documents are read in many small pieces (sector by sector, and
    directory entries 128 bytes at a time) which suits a page cache well when
    the underlying source is slow. Up to *cache_pages* pages of *page_size*
    bytes are retained, discarding the least recently used first.

    Closing a :class:`PagedSource` closes the wrapped source.
    """

    def __init__(self, source, page_size=1024, cache_pages=10000):
        super(PagedSource, self).__init__()
        if page_size < 1:
            raise ValueError('page_size must be positive')
        if cache_pages < 1:
            raise ValueError('cache_pages must be positive')
        self._source = source
        self._page_size = page_size
        self._cache_pages = cache_pages
        self._pages = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _get_page(self, page):
        # Caller holds the lock
        try:
            data = self._pages[page]
        except KeyError:
            self.misses += 1
            data = self._source.read_at(page * self._page_size, self._page_size)
            self._pages[page] = data
            if len(self._pages) > self._cache_pages:
                self._pages.popitem(last=False)
        else:
            self.hits += 1
            self._pages.move_to_end(page)
        return data

    def read_at(self, offset, size):
        if offset < 0 or size < 0:
            raise ValueError('offset and size must be non-negative')
        result = []
        remaining = size
        with self._lock:
            while remaining > 0:
                page, page_offset = divmod(offset, self._page_size)
                data = self._get_page(page)[page_offset:page_offset + remaining]
                if not data:
                    break
                result.append(data)
                offset += len(data)
                remaining -= len(data)
                if page_offset + len(data) < self._page_size:
                    # Short page; the data ends here
                    break
        return b''.join(result)

    def close(self):
        with self._lock:
            self._pages.clear()
        self._source.close()


class OffsetSource(object):
    """
    Presents the content of *source* from *offset* onwards, so a compound
    document embedded within a larger image (a disk image or carved blob) can
    be read in place. Closing an :class:`OffsetSource` closes the wrapped
    source.
    """

    def __init__(self, source, offset):
        super(OffsetSource, self).__init__()
        if offset < 0:
            raise ValueError('offset must be non-negative')
        self._source = source
        self._offset = offset

    def read_at(self, offset, size):
        if offset < 0 or size < 0:
            raise ValueError('offset and size must be non-negative')
        return self._source.read_at(self._offset + offset, size)

    def close(self):
        self._source.close()


def open_source(filename_or_obj):
    """
    Return a tuple of ``(source, owned)`` for *filename_or_obj*.

    *filename_or_obj* may be a filename, a bytes-like object, an object which
    already provides ``read_at``, or a file-like object. File-like objects
    with a valid file descriptor are memory mapped; those without one must
    support ``seek`` and ``read``. *owned* is ``True`` when the returned
    source should be closed by the caller once finished with.
    """
    if isinstance(filename_or_obj, (str, os.PathLike)):
        f = io.open(filename_or_obj, 'rb')
        try:
            return _open_file(f), True
        except Exception:
            f.close()
            raise
    elif isinstance(filename_or_obj, (bytes, bytearray, memoryview)):
        return BytesSource(filename_or_obj), True
    elif hasattr(filename_or_obj, 'read_at'):
        return filename_or_obj, False
    elif hasattr(filename_or_obj, 'read'):
        return _wrap_file(filename_or_obj), True
    raise IOError(
            'filename_or_obj must be a filename, bytes, a byte source, or a '
            'file-like object')


class _OwnedMmapSource(MmapSource):
    # A memory map which also closes the file it maps
    def __init__(self, fileobj):
        super(_OwnedMmapSource, self).__init__(fileobj)
        self._file = fileobj

    def close(self):
        try:
            super(_OwnedMmapSource, self).close()
        finally:
            self._file.close()


def _open_file(f):
    if os.fstat(f.fileno()).st_size == 0:
        f.close()
        return BytesSource(b'')
    return _OwnedMmapSource(f)


class _UnownedFileSource(FileSource):
    # Wraps a caller's file object without closing it
    def close(self):
        self._file = None


def _wrap_file(f):
    try:
        fd = f.fileno()
    except (IOError, AttributeError, ValueError):
        logger.debug('no file descriptor available; reading via seek')
    else:
        if os.fstat(fd).st_size == 0:
            return BytesSource(b'')
        return MmapSource(f)
    if not hasattr(f, 'seek'):
        raise IOError('filename_or_obj must support seek() or fileno()')
    return _UnownedFileSource(f)
