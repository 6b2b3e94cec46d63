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

import struct

import pytest

from mscfb.const import (
    COMPOUND_MAGIC,
    COMPOUND_HEADER,
    COMPOUND_DIFAT,
    DIR_HEADER,
    FREE_SECTOR,
    END_OF_CHAIN,
    NORMAL_FAT_SECTOR,
    NO_STREAM,
    DIR_INVALID,
    DIR_STORAGE,
    DIR_STREAM,
    DIR_ROOT,
    MINI_SECTOR_SIZE,
    MINI_STREAM_CUTOFF,
    )


HEADER_FIELDS = (
    'magic',
    'clsid',
    'minor_version',
    'major_version',
    'byte_order',
    'sector_shift',
    'mini_sector_shift',
    'unused',
    'dir_sector_count',
    'normal_sector_count',
    'dir_first_sector',
    'txn_signature',
    'mini_size_limit',
    'mini_first_sector',
    'mini_sector_count',
    'master_first_sector',
    'master_sector_count',
    )

V3_HEADER = dict(
    magic=COMPOUND_MAGIC,
    clsid=b'\0' * 16,
    minor_version=0x3E,
    major_version=3,
    byte_order=0xFFFE,
    sector_shift=9,
    mini_sector_shift=6,
    unused=b'\0' * 6,
    dir_sector_count=0,
    normal_sector_count=1,
    dir_first_sector=1,
    txn_signature=0,
    mini_size_limit=MINI_STREAM_CUTOFF,
    mini_first_sector=END_OF_CHAIN,
    mini_sector_count=0,
    master_first_sector=END_OF_CHAIN,
    master_sector_count=0,
    )


def make_header(difat=(), **fields):
    values = dict(V3_HEADER)
    values.update(fields)
    difat = list(difat) + [FREE_SECTOR] * (109 - len(difat))
    return (
        COMPOUND_HEADER.pack(*(values[name] for name in HEADER_FIELDS)) +
        COMPOUND_DIFAT.pack(*difat))


def make_dir_entry(name='', entry_type=DIR_STREAM, first_sector=END_OF_CHAIN,
                   size=0, created=0, modified=0, left=NO_STREAM,
                   right=NO_STREAM, child=NO_STREAM, name_len=None):
    raw_name = name.encode('utf-16le')
    if name_len is None:
        name_len = len(raw_name) + 2 if name or entry_type else 0
    return DIR_HEADER.pack(
        raw_name.ljust(64, b'\0')[:64], name_len, entry_type, 1,
        left, right, child, b'\0' * 16, 0, created, modified, first_sector,
        size)


def make_empty_entry():
    return make_dir_entry('', DIR_INVALID, first_sector=0)


def pack_sectors(values, sector_size, fill=FREE_SECTOR):
    count = sector_size // 4
    values = list(values)
    if len(values) % count:
        values.extend([fill] * (count - len(values) % count))
    return struct.pack('<%dL' % len(values), *values)


def build_image(fat, sectors, sector_shift=9, fat_sectors=(0,), **fields):
    """
    Build a compound file image from a hand-written *fat* (placed in the
    sectors listed by *fat_sectors*) and a dict mapping sector numbers to
    content. Header fields can be overridden by keyword.
    """
    sector_size = 1 << sector_shift
    entries_per_sector = sector_size // 4
    content = dict(sectors)
    fat = list(fat) + [FREE_SECTOR] * (
        entries_per_sector * len(fat_sectors) - len(fat))
    for index, sector in enumerate(fat_sectors):
        content[sector] = pack_sectors(
            fat[index * entries_per_sector:(index + 1) * entries_per_sector],
            sector_size)
    fields.setdefault('sector_shift', sector_shift)
    fields.setdefault('normal_sector_count', len(fat_sectors))
    if sector_shift == 12:
        fields.setdefault('major_version', 4)
    header = make_header(difat=fields.pop('difat', fat_sectors), **fields)
    count = max(content) + 1 if content else 0
    return header.ljust(sector_size, b'\0') + b''.join(
        content.get(sector, b'').ljust(sector_size, b'\0')
        for sector in range(count))


class DocumentBuilder(object):
    """
    Lays out a complete, valid compound document holding the given streams
    (a list of ``(name, data)`` tuples) beneath the root entry. Streams below
    the mini-stream cutoff go into the mini-stream, the rest get their own
    chains. The FAT is written after everything else.
    """

    def __init__(self, sector_shift=9):
        self.sector_shift = sector_shift
        self.sector_size = 1 << sector_shift
        self.sectors = []
        self.fat = []

    def allocate(self, data):
        if not data:
            return END_OF_CHAIN
        start = len(self.sectors)
        count = (len(data) + self.sector_size - 1) // self.sector_size
        for index in range(count):
            self.sectors.append(
                data[index * self.sector_size:(index + 1) * self.sector_size])
            self.fat.append(
                start + index + 1 if index < count - 1 else END_OF_CHAIN)
        return start

    def build(self, streams, root_name='Root Entry', created=0, modified=0):
        ministream = b''
        mini_fat = []
        placed = []
        for name, data in streams:
            if len(data) < MINI_STREAM_CUTOFF:
                if not data:
                    placed.append((name, END_OF_CHAIN, 0))
                    continue
                start = len(ministream) // MINI_SECTOR_SIZE
                count = (len(data) + MINI_SECTOR_SIZE - 1) // MINI_SECTOR_SIZE
                mini_fat.extend(
                    start + index + 1 if index < count - 1 else END_OF_CHAIN
                    for index in range(count))
                ministream += data.ljust(count * MINI_SECTOR_SIZE, b'\0')
                placed.append((name, start, len(data)))
            else:
                placed.append((name, self.allocate(data), len(data)))
        root_start = self.allocate(ministream)
        mini_first = (
            self.allocate(pack_sectors(mini_fat, self.sector_size))
            if mini_fat else END_OF_CHAIN)
        mini_count = (
            len(pack_sectors(mini_fat, self.sector_size)) // self.sector_size
            if mini_fat else 0)

        entries = [make_dir_entry(
            root_name, DIR_ROOT, root_start, len(ministream),
            created=created, modified=modified,
            child=1 if placed else NO_STREAM)]
        for index, (name, start, size) in enumerate(placed):
            entries.append(make_dir_entry(
                name, DIR_STREAM, start, size, created=created,
                modified=modified,
                right=index + 2 if index + 1 < len(placed) else NO_STREAM))
        per_sector = self.sector_size // DIR_HEADER.size
        while len(entries) % per_sector:
            entries.append(make_empty_entry())
        directory = b''.join(entries)
        dir_first = self.allocate(directory)
        dir_count = len(directory) // self.sector_size

        # The FAT goes last; it must cover its own sectors too
        entries_per_sector = self.sector_size // 4
        fat_count = 1
        while len(self.sectors) + fat_count > fat_count * entries_per_sector:
            fat_count += 1
        fat_sectors = list(range(
            len(self.sectors), len(self.sectors) + fat_count))
        fat = self.fat + [NORMAL_FAT_SECTOR] * fat_count
        fat_data = pack_sectors(fat, self.sector_size)
        for index in range(fat_count):
            self.sectors.append(fat_data[
                index * self.sector_size:(index + 1) * self.sector_size])

        header = make_header(
            difat=fat_sectors,
            major_version=4 if self.sector_shift == 12 else 3,
            sector_shift=self.sector_shift,
            dir_sector_count=dir_count if self.sector_shift == 12 else 0,
            normal_sector_count=fat_count,
            dir_first_sector=dir_first,
            mini_first_sector=mini_first,
            mini_sector_count=mini_count,
            )
        return header.ljust(self.sector_size, b'\0') + b''.join(
            sector.ljust(self.sector_size, b'\0') for sector in self.sectors)


def build_document(streams=(), sector_shift=9, **kwargs):
    return DocumentBuilder(sector_shift).build(list(streams), **kwargs)


def pattern(size, seed=0):
    return bytes((seed + index * 7) % 251 for index in range(size))


@pytest.fixture
def header():
    return make_header


@pytest.fixture
def dir_entry():
    return make_dir_entry


@pytest.fixture
def image():
    return build_image


@pytest.fixture
def document():
    return build_document


@pytest.fixture
def data():
    return pattern


@pytest.fixture
def empty_root(image):
    # FAT in sector 0, directory (a lone root entry) in sector 1
    return image(
        [NORMAL_FAT_SECTOR, END_OF_CHAIN],
        {1: make_dir_entry('Root Entry', DIR_ROOT, END_OF_CHAIN, 0)})
