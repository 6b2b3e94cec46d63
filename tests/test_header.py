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

import pytest

import mscfb
from mscfb.header import CompoundFileHeader
from mscfb.const import COMPOUND_MAGIC, END_OF_CHAIN, FREE_SECTOR


def test_header_v3(header):
    h = CompoundFileHeader(header(difat=[0, 5]))
    assert h.sector_size == 512
    assert h.mini_sector_size == 64
    assert h.mini_size_limit == 4096
    assert h.major_version == 3
    assert h.dir_first_sector == 1
    assert h.mini_first_sector == END_OF_CHAIN
    assert h.master_first_sector == END_OF_CHAIN
    assert len(h.difat) == 109
    assert h.difat[:3] == (0, 5, FREE_SECTOR)

def test_header_v4(header):
    h = CompoundFileHeader(header(major_version=4, sector_shift=12))
    assert h.sector_size == 4096
    assert h.major_version == 4

def test_header_bad_magic(header):
    with pytest.raises(mscfb.CompoundFileInvalidMagicError):
        CompoundFileHeader(header(magic=b'\0' * 8))

def test_header_empty():
    with pytest.raises(mscfb.CompoundFileInvalidMagicError):
        CompoundFileHeader(b'')

def test_header_truncated(header):
    # Only the magic survives; the rest reads as zeros
    with pytest.raises(mscfb.CompoundFileSectorSizeError):
        CompoundFileHeader(COMPOUND_MAGIC)

@pytest.mark.parametrize('shift', [0, 7, 8, 10, 11, 13, 16])
def test_header_bad_sector_size(header, shift):
    with pytest.raises(mscfb.CompoundFileSectorSizeError):
        CompoundFileHeader(header(sector_shift=shift))

@pytest.mark.parametrize('shift', [5, 7, 9])
def test_header_bad_mini_sector_size(header, shift):
    with pytest.raises(mscfb.CompoundFileMiniConfigError):
        CompoundFileHeader(header(mini_sector_shift=shift))

@pytest.mark.parametrize('cutoff', [0, 4095, 4097, 8192])
def test_header_bad_mini_cutoff(header, cutoff):
    with pytest.raises(mscfb.CompoundFileMiniConfigError):
        CompoundFileHeader(header(mini_size_limit=cutoff))

def test_header_errors_are_ioerrors(header):
    with pytest.raises(IOError):
        CompoundFileHeader(header(magic=b'\0' * 8))

def test_header_v3_large_sectors(header):
    with pytest.warns(mscfb.CompoundFileHeaderWarning):
        CompoundFileHeader(header(sector_shift=12))

def test_header_v4_small_sectors(header):
    with pytest.warns(mscfb.CompoundFileHeaderWarning):
        CompoundFileHeader(header(major_version=4))

def test_header_v3_dir_count(header):
    with pytest.warns(mscfb.CompoundFileHeaderWarning):
        CompoundFileHeader(header(dir_sector_count=1))

def test_header_unknown_version(header):
    with pytest.warns(mscfb.CompoundFileHeaderWarning):
        h = CompoundFileHeader(header(major_version=5))
    assert h.sector_size == 512

def test_header_bom(header):
    with pytest.warns(mscfb.CompoundFileHeaderWarning):
        CompoundFileHeader(header(byte_order=0xFEFF))

def test_header_clean(header):
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        CompoundFileHeader(header())

def test_header_repr(header):
    assert repr(CompoundFileHeader(header())) == (
        '<CompoundFileHeader version=3.62 sector_size=512>')
