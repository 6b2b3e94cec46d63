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

import re
import logging
import warnings
import struct as st
from array import array

from .errors import (
    CompoundFileError,
    CompoundFileTruncatedFatError,
    CompoundFileMasterLoopError,
    CompoundFileNormalFatBoundsError,
    CompoundFileNormalFatLoopError,
    CompoundFileMiniFatBoundsError,
    CompoundFileMiniFatLoopError,
    CompoundFileDirectoryIndexError,
    CompoundFileNotFoundError,
    CompoundFileMasterFatWarning,
    CompoundFileMiniFatWarning,
    CompoundFileChainWarning,
    )
from .header import CompoundFileHeader
from .entities import CompoundFileEntity
from .sources import open_source, read_source
from .streams import (
    CompoundFileNormalStream,
    CompoundFileMiniStream,
    CompoundFileBufferStream,
    )
from .const import (
    FREE_SECTOR,
    END_OF_CHAIN,
    HEADER_SIZE,
    MAX_SECTORS,
    DIR_HEADER,
    FILENAME_ENCODING,
    )


logger = logging.getLogger(__name__)


# In the interests of trying to keep naming vaguely consistent and sensible
# here's a translation list with the names we'll be using first and the names
# other documents use after:
#
#   normal-FAT = FAT = SAT
#   master-FAT = DIFAT = DIF = MSAT
#   mini-FAT = miniFAT = SSAT
#
# Compound documents consist of a header, followed by a number of equally sized
# sectors numbered incrementally from zero (sector n lives at (n + 1) *
# sector_size; the header occupies "sector -1"). The master-FAT lists the
# sectors holding the normal-FAT, the normal-FAT links sectors into chains, and
# the mini-FAT does the same for 64-byte mini-sectors carved out of the root
# entry's stream (the mini-stream). Hence the load order: master-FAT, normal-
# FAT, directory (needs the normal-FAT), and finally the mini-FAT and
# mini-stream (need directory entry 0).
#
# Every sector number we read is untrusted: all chain walks are bounds checked,
# watch for cycles, and stop at max_sectors.

class CompoundFileReader(object):
    """
    Provides an interface for reading `OLE Compound Document`_ files.

    The :class:`CompoundFileReader` class decodes the allocation tables and
    directory of a compound document (a file-system in a file) and hands out
    random-access readers over the streams within it.

    The class can be constructed with a filename, a bytes-like object, a
    file-like object, or any object providing a ``read_at(offset, size)``
    method (see :mod:`mscfb.sources`). All tables are loaded by the
    constructor; if any stage fails the constructor raises a subclass of
    :exc:`CompoundFileError`. Thereafter the reader is never modified, so
    streams opened from it may be read from multiple threads provided the
    underlying source permits concurrent reads.

    The directory is presented as a flat list of :class:`CompoundFileEntity`
    instances in :attr:`directories`, indexed by directory id (the storage
    hierarchy is not reconstructed). Entry 0 is always the root entry.

    The context manager protocol is supported, permitting usage of the class
    like so::

        with CompoundFileReader('foo.doc') as doc:
            for entry in doc.list_directory():
                if entry.isfile:
                    stream, size = doc.stream_by_directory_id(entry.id)
                    stream.read()

    *max_sectors* bounds the length of every chain walk; longer chains are
    truncated with a :exc:`CompoundFileChainWarning`.

    .. attribute:: header

        The :class:`CompoundFileHeader` of the document.

    .. attribute:: fat

        The normal-FAT as an :class:`array.array` of sector numbers.

    .. attribute:: mini_fat

        The mini-FAT as an :class:`array.array` of mini-sector numbers.

    .. attribute:: directories

        The list of :class:`CompoundFileEntity` instances.

    .. attribute:: ministream

        The :class:`CompoundFileNormalStream` holding the mini-stream.
    """

    def __init__(self, filename_or_obj, max_sectors=MAX_SECTORS):
        super(CompoundFileReader, self).__init__()
        if max_sectors < 1:
            raise ValueError('max_sectors must be positive')
        self._source, self._owned = open_source(filename_or_obj)
        self._max_sectors = max_sectors
        self.header = None
        self.fat_sectors = array('L')
        self.fat = array('L')
        self.mini_fat = array('L')
        self.directories = []
        self.ministream = None
        try:
            self.header = CompoundFileHeader(
                    read_source(self._source, 0, HEADER_SIZE))
            self.sector_size = self.header.sector_size
            self.mini_sector_size = self.header.mini_sector_size
            self.mini_stream_cutoff = self.header.mini_size_limit
            self._sector_format = st.Struct('<%dL' % (self.sector_size // 4))
            self._load_master_fat()
            self._load_normal_fat()
            self._load_directory()
            self._load_mini_fat()
        except Exception:
            self.close()
            raise

    def close(self):
        """
        Release the underlying byte source (if the reader opened it).
        """
        try:
            if self._owned and self._source is not None:
                self._source.close()
        finally:
            self._source = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _read_sector(self, sector):
        return read_source(
                self._source, (sector + 1) * self.sector_size,
                self.sector_size)

    def _load_master_fat(self):
        # The DIFAT is the list of sectors occupied by the normal-FAT. The
        # first 109 entries are held in the header; further entries live in a
        # chain of DIFAT sectors whose final entry links to the next one. The
        # DIFAT sector count from the header is disregarded, we simply follow
        # the links, tracking each to catch loops.
        self.fat_sectors = array('L', (
            sector for sector in self.header.difat
            if sector != FREE_SECTOR))
        per_sector = self.sector_size // 4
        sector = self.header.master_first_sector
        seen = {sector}
        while sector not in (FREE_SECTOR, END_OF_CHAIN):
            data = self._read_sector(sector)
            if len(data) < self.sector_size:
                warnings.warn(
                        'DIFAT sector %d is truncated; ignoring the rest of '
                        'the DIFAT' % sector, CompoundFileMasterFatWarning)
                break
            values = self._sector_format.unpack(data)
            next_sector = values[-1]
            # Only the entries before the penultimate are taken as FAT
            # sectors
            self.fat_sectors.extend(
                value for value in values[:per_sector - 2]
                if value != FREE_SECTOR)
            if next_sector in seen or len(seen) > self._max_sectors:
                raise CompoundFileMasterLoopError(
                        'DIFAT loop encountered (sector %d links to '
                        '%d)' % (sector, next_sector))
            seen.add(next_sector)
            sector = next_sector
        if len(self.fat_sectors) != self.header.normal_sector_count:
            warnings.warn(
                    'DIFAT length does not match FAT sector count '
                    '(%d != %d)' % (
                        len(self.fat_sectors), self.header.normal_sector_count),
                    CompoundFileMasterFatWarning)
        logger.debug('DIFAT lists %d FAT sectors', len(self.fat_sectors))

    def _load_normal_fat(self):
        self.fat = array('L')
        for sector in self.fat_sectors:
            data = self._read_sector(sector)
            if len(data) < self.sector_size:
                raise CompoundFileTruncatedFatError(
                        'FAT sector %d is truncated (%d of %d bytes)' % (
                            sector, len(data), self.sector_size))
            self.fat.extend(self._sector_format.unpack(data))
        logger.debug('FAT holds %d entries', len(self.fat))

    def _load_directory(self):
        # The red-black tree of siblings is deliberately not reconstructed;
        # the directory stream is simply read as a flat sequence of entries,
        # with the count derived from the length of the directory chain
        stream = self.stream_by_first_sector(self.header.dir_first_sector)
        self.directories = []
        for offset in range(0, stream.size, DIR_HEADER.size):
            data = stream.read_at(offset, DIR_HEADER.size)
            if len(data) < DIR_HEADER.size:
                break
            self.directories.append(
                    CompoundFileEntity(len(self.directories), data))
        logger.debug('directory holds %d entries', len(self.directories))

    def _load_mini_fat(self):
        if not self.directories:
            raise CompoundFileDirectoryIndexError(
                    'directory has no root entry')
        root = self.directories[0]
        self.ministream = CompoundFileNormalStream(
                self._source, self.get_chain(root.first_sector),
                self.sector_size, root.size if root.size > 0 else None)

        first_sector = self.header.mini_first_sector
        if first_sector == FREE_SECTOR:
            warnings.warn(
                    'mini FAT first sector set to FREE_SECTOR',
                    CompoundFileMiniFatWarning)
            first_sector = END_OF_CHAIN
        # A damaged mini-FAT is tolerated: whatever could be read before the
        # damage is kept, and streams relying on the rest fail when opened
        self.mini_fat = array('L')
        stream = self.stream_by_first_sector(first_sector)
        for offset in range(0, stream.size, self.sector_size):
            try:
                data = stream.read_at(offset, self.sector_size)
            except CompoundFileError as e:
                warnings.warn(
                        'mini FAT read failed at offset %d (%s)' % (offset, e),
                        CompoundFileMiniFatWarning)
                break
            if not data:
                warnings.warn(
                        'mini FAT ends early at offset %d' % offset,
                        CompoundFileMiniFatWarning)
                break
            count = len(data) // 4
            self.mini_fat.extend(st.unpack('<%dL' % count, data[:count * 4]))
        logger.debug(
                'mini FAT holds %d entries, mini stream is %d bytes',
                len(self.mini_fat), self.ministream.size)

    def _walk_chain(self, start, table, bounds_error, loop_error, label):
        chain = []
        seen = set()
        sector = start
        while sector != END_OF_CHAIN:
            chain.append(sector)
            seen.add(sector)
            if not 0 <= sector < len(table):
                raise bounds_error(
                        '%s reference %d exceeds table length %d' % (
                            label, sector, len(table)), chain)
            sector = table[sector]
            if sector in seen:
                raise loop_error(
                        '%s cycle detected at sector %d in chain starting at '
                        '%d' % (label, sector, start), chain)
            if sector != END_OF_CHAIN and len(chain) >= self._max_sectors:
                warnings.warn(
                        '%s chain starting at %d truncated at %d '
                        'sectors' % (label, start, len(chain)),
                        CompoundFileChainWarning)
                break
        return chain

    def get_chain(self, start):
        """
        Return the list of sectors in the normal-FAT chain beginning at
        *start*. Raises :exc:`CompoundFileNormalFatBoundsError` or
        :exc:`CompoundFileNormalFatLoopError` (both carrying the partial chain
        in their ``chain`` attribute) if the chain is broken.
        """
        return self._walk_chain(
                start, self.fat, CompoundFileNormalFatBoundsError,
                CompoundFileNormalFatLoopError, 'FAT')

    def get_mini_chain(self, start):
        """
        Return the list of mini-sectors in the mini-FAT chain beginning at
        *start*. Raises :exc:`CompoundFileMiniFatBoundsError` or
        :exc:`CompoundFileMiniFatLoopError` if the chain is broken.
        """
        return self._walk_chain(
                start, self.mini_fat, CompoundFileMiniFatBoundsError,
                CompoundFileMiniFatLoopError, 'mini FAT')

    def stream_by_first_sector(self, sector):
        """
        Return a :class:`CompoundFileNormalStream` over the normal-FAT chain
        beginning at *sector*.

        As no directory entry is involved the true length of the content is
        unknown; the stream's size is the full length of the chain (number of
        sectors multiplied by the sector size).
        """
        return CompoundFileNormalStream(
                self._source, self.get_chain(sector), self.sector_size)

    def stream_by_directory_id(self, index):
        """
        Return a tuple of ``(stream, size)`` for the directory entry with id
        *index*.

        Streams smaller than the mini-stream cutoff are read from the
        mini-stream into memory and returned as a
        :class:`CompoundFileBufferStream`; *size* is the entry's declared
        size. Larger streams are returned as a
        :class:`CompoundFileNormalStream` limited to the declared size (or the
        length of the chain, whichever is smaller) and *size* is the stream's
        effective size.
        """
        entry = self._get_entry(index)
        if entry.size < self.mini_stream_cutoff:
            if entry.size == 0:
                return CompoundFileBufferStream(b''), 0
            stream = CompoundFileMiniStream(
                    self.ministream, self.get_mini_chain(entry.first_sector),
                    self.mini_sector_size, entry.size)
            return CompoundFileBufferStream(stream.read_at(0)), entry.size
        stream = CompoundFileNormalStream(
                self._source, self.get_chain(entry.first_sector),
                self.sector_size, entry.size)
        return stream, stream.size

    def open_by_name(self, name):
        """
        Return a tuple of ``(stream, entry)`` for the first directory entry
        named *name*. Raises :exc:`CompoundFileNotFoundError` if there is no
        such entry.
        """
        entry = self.stat(name)
        stream, size = self.stream_by_directory_id(entry.id)
        return stream, entry

    def stat(self, name):
        """
        Return the first :class:`CompoundFileEntity` named *name*. Names are
        compared exactly. Raises :exc:`CompoundFileNotFoundError` if there is
        no such entry.
        """
        if isinstance(name, bytes):
            name = name.decode(FILENAME_ENCODING)
        for entry in self.directories:
            if entry.name == name:
                return entry
        raise CompoundFileNotFoundError(
                'unable to locate %s in compound file' % name)

    def list_directory(self, path=''):
        """
        Return the entries within *path*.

        The storage hierarchy is not reconstructed, so all entries are
        treated as living at the top level: an empty path (or one consisting
        only of ``/`` or ``\\`` separators) returns every entry, and any other
        path returns an empty list.
        """
        if [component for component in re.split(r'[\\/]', path) if component]:
            return []
        return list(self.directories)

    def open(self, name_or_entity):
        """
        Return a file-like object with the content of the specified entity.

        Given a :class:`CompoundFileEntity` instance which represents a stream,
        or the name of one, this method returns a :class:`CompoundFileStream`
        which can be used to read the content of the stream.
        """
        if isinstance(name_or_entity, (str, bytes)):
            name_or_entity = self.stat(name_or_entity)
        if not name_or_entity.isfile:
            raise CompoundFileError(
                    '%s is not a stream' % name_or_entity.name)
        stream, size = self.stream_by_directory_id(name_or_entity.id)
        return stream

    def _get_entry(self, index):
        if not 0 <= index < len(self.directories):
            raise CompoundFileDirectoryIndexError(
                    'invalid directory index (%d)' % index)
        return self.directories[index]

    def __len__(self):
        return len(self.directories)

    def __iter__(self):
        return iter(self.directories)

    def __getitem__(self, index_or_name):
        if isinstance(index_or_name, (str, bytes)):
            return self.stat(index_or_name)
        return self._get_entry(index_or_name)

    def __contains__(self, name):
        try:
            self.stat(name)
        except CompoundFileNotFoundError:
            return False
        return True
