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

import warnings
import datetime as dt

from .errors import CompoundFileDirEntryWarning
from .const import (
    DIR_INVALID,
    DIR_STORAGE,
    DIR_STREAM,
    DIR_ROOT,
    DIR_HEADER,
    FILETIME_EPOCH_DELTA,
    FILETIME_TICKS,
    )


def filetime_to_unix(filetime):
    """
    Convert a Windows FILETIME (100ns intervals since 1601-01-01 UTC) to whole
    seconds since the unix epoch. Sub-second precision is discarded.
    """
    return filetime // FILETIME_TICKS - FILETIME_EPOCH_DELTA


def unix_to_filetime(seconds):
    """
    Convert whole seconds since the unix epoch to a Windows FILETIME.
    """
    return (seconds + FILETIME_EPOCH_DELTA) * FILETIME_TICKS


def filetime_to_datetime(filetime):
    """
    Convert a Windows FILETIME to a naive UTC :class:`~datetime.datetime`,
    or ``None`` if *filetime* is zero (meaning "not recorded").
    """
    if filetime == 0:
        return None
    try:
        return dt.datetime(1601, 1, 1) + dt.timedelta(microseconds=filetime // 10)
    except OverflowError:
        return None


def _decode_name(raw):
    # Truncate at the first NUL code unit *before* decoding so garbage after
    # the terminator can't upset the codec
    for index in range(0, len(raw), 2):
        if raw[index:index + 2] == b'\0\0':
            return raw[:index].decode('utf-16le', 'replace'), True
    return raw.decode('utf-16le', 'replace'), False


class CompoundFileEntity(object):
    """
    Represents an entry in the directory of an OLE Compound Document.

    An entity can be a "stream" (analogous to a file in a file-system) which
    has a :attr:`size` and can be opened with
    :meth:`CompoundFileReader.stream_by_directory_id`, or a "storage"
    (analogous to a directory) which merely groups other entries. The root
    entry (always entry 0) is a storage whose :attr:`first_sector` and
    :attr:`size` describe the mini-stream.

    Entries are decoded from the 128-byte records of the directory stream;
    values that violate the format are reported as
    :exc:`CompoundFileDirEntryWarning` but otherwise left as found.

    .. attribute:: id

        The ordinal of the entry within the directory stream.

    .. attribute:: name

        The name of the entry, truncated at the first NULL character. This can
        be up to 31 characters long.

    .. attribute:: size

        The declared length of the stream in bytes.

    .. attribute:: first_sector

        The first sector (or mini-sector, for streams smaller than the
        mini-stream cutoff) of the entry's content.

    .. attribute:: ctime

        The creation time-stamp in seconds since the unix epoch.

    .. attribute:: mtime

        The modification time-stamp in seconds since the unix epoch.

    .. attribute:: entry_type

        The raw type code: 0 (empty), 1 (storage), 2 (stream), or 5 (root).
    """

    def __init__(self, index, data):
        super(CompoundFileEntity, self).__init__()
        self.id = index
        (
            name,
            name_len,
            self.entry_type,
            self.color,
            self.left_id,
            self.right_id,
            self.child_id,
            self.clsid,
            self.state_bits,
            self._created,
            self._modified,
            self.first_sector,
            self.size,
        ) = DIR_HEADER.unpack(data)
        self.name, terminated = _decode_name(name)
        if not terminated:
            self._check(False, 'missing NULL terminator in name')
        if self.entry_type == DIR_INVALID:
            self._check(name_len == 0, 'invalid name length (%d)' % name_len)
        else:
            # Name length is in bytes, including NULL terminator
            self._check(
                    (len(self.name) + 1) * 2 == name_len,
                    'invalid name length (%d)' % name_len)
        if index == 0:
            self._check(self.entry_type == DIR_ROOT, 'invalid root type')
        self.ctime = filetime_to_unix(self._created)
        self.mtime = filetime_to_unix(self._modified)

    @property
    def isdir(self):
        """
        Returns ``True`` if this is a storage (or the root) entry.
        """
        return self.entry_type in (DIR_STORAGE, DIR_ROOT)

    @property
    def isfile(self):
        """
        Returns ``True`` if this is a stream entry.
        """
        return self.entry_type == DIR_STREAM

    @property
    def created(self):
        """
        The creation time-stamp as a :class:`~datetime.datetime` (UTC), or
        ``None`` if no time-stamp was recorded.
        """
        return filetime_to_datetime(self._created)

    @property
    def modified(self):
        """
        The modification time-stamp as a :class:`~datetime.datetime` (UTC),
        or ``None`` if no time-stamp was recorded.
        """
        return filetime_to_datetime(self._modified)

    def _check(self, valid, message):
        if not valid:
            warnings.warn(
                    '%s in dir entry %d' % (message, self.id),
                    CompoundFileDirEntryWarning)

    def __repr__(self):
        return (
            "<CompoundFileEntity dir='%s'>" % self.name
            if self.isdir else
            "<CompoundFileEntity name='%s'>" % self.name
            )
