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

import struct as st


# Magic identifier at the start of the file
COMPOUND_MAGIC = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'

FREE_SECTOR       = 0xFFFFFFFF # denotes an unallocated (free) sector
END_OF_CHAIN      = 0xFFFFFFFE # denotes the end of a stream chain
NORMAL_FAT_SECTOR = 0xFFFFFFFD # denotes a sector used for the regular FAT
MASTER_FAT_SECTOR = 0xFFFFFFFC # denotes a sector used for the master FAT

NO_STREAM      = 0xFFFFFFFF # unallocated directory entry

DIR_INVALID    = 0 # unknown/empty(?) storage type
DIR_STORAGE    = 1 # element is a storage (dir) object
DIR_STREAM     = 2 # element is a stream (file) object
DIR_LOCKBYTES  = 3 # element is an ILockBytes object
DIR_ROOT       = 5 # element is the root storage object

# Sector shift -> sector size; nothing else is accepted
SECTOR_SIZES = {
    9:  512,
    12: 4096,
    }

MINI_SECTOR_SHIFT  = 6
MINI_SECTOR_SIZE   = 1 << MINI_SECTOR_SHIFT
MINI_STREAM_CUTOFF = 4096

HEADER_SIZE        = 512
HEADER_DIFAT_COUNT = 109
BYTE_ORDER_MARK    = 0xFFFE

# Upper bound on the length of any chain walk (DIFAT, FAT or mini-FAT)
MAX_SECTORS = 1 << 20

# Seconds between the FILETIME epoch (1601-01-01) and the unix epoch
FILETIME_EPOCH_DELTA = 11644473600
FILETIME_TICKS       = 10000000 # 100ns intervals per second

FILENAME_ENCODING = 'latin-1'


COMPOUND_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '8s',   # magic string
    '16s',  # file UUID (unused)
    'H',    # file header minor version
    'H',    # file header major version
    'H',    # byte order mark
    'H',    # sector size (actual size is 2**sector_size)
    'H',    # mini sector size (actual size is 2**short_sector_size)
    '6s',   # unused
    'L',    # directory chain sector count
    'L',    # normal-FAT sector count
    'L',    # ID of first sector of the directory
    'L',    # transaction signature (unused)
    'L',    # minimum size of a normal stream
    'L',    # ID of first sector of the mini-FAT
    'L',    # mini-FAT sector count
    'L',    # ID of first sector of the master-FAT
    'L',    # master-FAT sector count
    )))

# The first 109 master-FAT entries live at the end of the header
COMPOUND_DIFAT = st.Struct('<%dL' % HEADER_DIFAT_COUNT)

DIR_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '64s',  # NULL-terminated filename in UTF-16 little-endian encoding
    'H',    # length of filename in bytes, including the terminator
    'B',    # dir-entry type
    'B',    # red (0) or black (1) entry
    'L',    # ID of left-sibling node
    'L',    # ID of right-sibling node
    'L',    # ID of children's root node
    '16s',  # dir-entry CLSID
    'L',    # user (state) flags
    'Q',    # creation timestamp
    'Q',    # modification timestamp
    'L',    # start sector of stream
    'Q',    # stream size
    )))
