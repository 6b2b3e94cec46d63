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
Command line front-end: ``mscfb ls FILE [PATH]`` lists the directory of a
compound document (one JSON object per line) and ``mscfb cat FILE [--sector]
[ID]`` writes the content of a stream to stdout.
"""

import io
import sys
import json
import shutil
import logging
import argparse
import datetime as dt

from .sources import FileSource, MmapSource, PagedSource, OffsetSource
from .reader import CompoundFileReader
from .const import MAX_SECTORS


logger = logging.getLogger(__name__)

UNIX_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def format_time(seconds):
    try:
        return (UNIX_EPOCH + dt.timedelta(seconds=seconds)).isoformat()
    except OverflowError:
        # Outside the range of datetime; report the raw seconds instead
        return seconds


def positive_int(s):
    value = int(s)
    if value < 1:
        raise argparse.ArgumentTypeError('%s is not a positive integer' % s)
    return value


def non_negative_int(s):
    value = int(s)
    if value < 0:
        raise argparse.ArgumentTypeError('%s is negative' % s)
    return value


def entry_record(entry):
    return {
        'Name':        entry.name,
        'Id':          entry.id,
        'Size':        entry.size,
        'Mtime':       format_time(entry.mtime),
        'Ctime':       format_time(entry.ctime),
        'IsDir':       entry.isdir,
        'FirstSector': entry.first_sector,
        }


def get_parser():
    parser = argparse.ArgumentParser(
        prog='mscfb',
        description='Inspect the content of OLE compound documents')
    parser.add_argument(
        '-v', '--verbose', action='count', default=0,
        help='produce more output (repeat for debug output)')
    parser.add_argument(
        '--page-size', type=positive_int, default=1024, metavar='BYTES',
        help='size of each cached page of the file (default: %(default)s)')
    parser.add_argument(
        '--cache-pages', type=positive_int, default=10000, metavar='N',
        help='number of pages of the file to cache (default: %(default)s)')
    parser.add_argument(
        '--max-sectors', type=positive_int, default=MAX_SECTORS, metavar='N',
        help='maximum length of any sector chain (default: %(default)s)')
    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    ls_cmd = commands.add_parser('ls', help='list the directory entries')
    ls_cmd.add_argument('file', help='the compound document to inspect')
    ls_cmd.add_argument(
        'path', nargs='?', default='\\',
        help='the path to list, separated by \\ (default: all entries)')
    ls_cmd.set_defaults(func=do_ls)

    cat_cmd = commands.add_parser('cat', help='write a stream to stdout')
    cat_cmd.add_argument('file', help='the compound document to inspect')
    cat_cmd.add_argument(
        'id', nargs='?', type=int, default=0,
        help='the directory id of the stream to dump (default: %(default)s)')
    cat_cmd.add_argument(
        '--sector', action='store_true',
        help='treat the id as the first sector of the stream')
    cat_cmd.set_defaults(func=do_cat)
    for cmd in (ls_cmd, cat_cmd):
        cmd.add_argument(
            '--image-offset', type=non_negative_int, default=0,
            metavar='BYTES',
            help='the offset of the document within the file '
            '(default: %(default)s)')
    return parser


def open_paged_source(args, fileobj):
    try:
        source = MmapSource(fileobj)
    except (ValueError, OSError):
        # Empty files and special files can't be mapped
        source = FileSource(fileobj)
    source = PagedSource(source, args.page_size, args.cache_pages)
    if args.image_offset:
        source = OffsetSource(source, args.image_offset)
    return source


def do_ls(args, doc, stdout):
    for entry in doc.list_directory(args.path):
        stdout.write(json.dumps(entry_record(entry)) + '\n')


def do_cat(args, doc, stdout):
    if args.sector:
        stream = doc.stream_by_first_sector(args.id)
        size = stream.size
    else:
        stream, size = doc.stream_by_directory_id(args.id)
    logger.info('writing %d bytes', size)
    out = stdout.buffer if hasattr(stdout, 'buffer') else stdout
    with stream:
        shutil.copyfileobj(stream, out)
    out.flush()


def main(args=None, stdout=None):
    if stdout is None:
        stdout = sys.stdout
    parser = get_parser()
    args = parser.parse_args(args)
    logging.basicConfig(
        stream=sys.stderr, format='%(name)s: %(levelname)s: %(message)s',
        level={0: logging.WARNING, 1: logging.INFO}.get(
            args.verbose, logging.DEBUG))
    logging.captureWarnings(True)
    try:
        with io.open(args.file, 'rb') as fileobj:
            source = open_paged_source(args, fileobj)
            try:
                with CompoundFileReader(
                        source, max_sectors=args.max_sectors) as doc:
                    args.func(args, doc, stdout)
            finally:
                source.close()
    except IOError as e:
        sys.stderr.write('mscfb: %s\n' % e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
