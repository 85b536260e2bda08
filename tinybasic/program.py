#!/usr/bin/python3
# Copyright (C) 2024 Dr. Ralf Schlatterbeck Open Source Consulting.
# Reichergasse 131, A-3411 Weidling.
# Web: http://www.runtux.com Email: office@runtux.com
# All rights reserved
# ****************************************************************************
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
# 
#   The above copyright notice and this permission notice shall be included in
#   all copies or substantial portions of the Software.
# 
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
# ****************************************************************************

import re
import logging
from collections import namedtuple

log = logging.getLogger ('tinybasic')

Program_Line = namedtuple ('Program_Line', ('number', 'text'))

class Program:
    """ Numbered program lines, always sorted ascending by number.
        The number of lines is bounded by max_lines, inserting a new
        line into a full program is silently dropped.
    >>> p = Program ()
    >>> p.insert (20, 'GOTO 10')
    True
    >>> p.insert (10, 'PRINT "HI"')
    True
    >>> [l.number for l in p.list ()]
    [10, 20]
    >>> p.find_index (20)
    1
    >>> p.find_index (15) is None
    True
    """

    line_re = re.compile (r'\s*([0-9]+)\s*(.*)')

    def __init__ (self, max_lines = 1000):
        self.max_lines = max_lines
        self.lines     = []
        self.index     = {}
    # end def __init__

    def __bool__ (self):
        return bool (self.lines)
    # end def __bool__

    def __getitem__ (self, idx):
        return self.lines [idx]
    # end def __getitem__

    def __iter__ (self):
        return self.list ()
    # end def __iter__

    def __len__ (self):
        return len (self.lines)
    # end def __len__

    def _reindex (self):
        self.lines.sort (key = lambda l: l.number)
        self.index = dict ((l.number, n) for n, l in enumerate (self.lines))
    # end def _reindex

    def clear (self):
        self.lines = []
        self.index = {}
    # end def clear

    def delete (self, number):
        """ Remove line with given number, no-op if there is none """
        idx = self.index.get (number)
        if idx is None:
            return
        del self.lines [idx]
        self._reindex ()
    # end def delete

    def find_index (self, number):
        return self.index.get (number)
    # end def find_index

    def insert (self, number, text):
        """ Insert or replace the line with the given number.
            Empty text deletes the line. Returns False if the line was
            dropped because the program is full.
        """
        if not text:
            self.delete (number)
            return True
        idx = self.index.get (number)
        if idx is not None:
            del self.lines [idx]
        if len (self.lines) >= self.max_lines:
            log.debug \
                ( 'Program full (%d lines), line %d dropped'
                , self.max_lines, number
                )
            return False
        self.lines.append (Program_Line (number, text))
        self._reindex ()
        return True
    # end def insert

    def list (self):
        return iter (tuple (self.lines))
    # end def list

    def load (self, f):
        """ Replace the program with lines "<number> <text>" from the
            iterable f, lines without a leading number are skipped.
        >>> p = Program ()
        >>> p.load (['  20 END', 'garbage', '10   PRINT 1  ', '20 PRINT 2'])
        >>> list (p.list ())
        [Program_Line(number=10, text='PRINT 1'), Program_Line(number=20, text='PRINT 2')]
        """
        self.clear ()
        for l in f:
            m = self.line_re.match (l.rstrip ())
            if not m:
                continue
            self.insert (int (m.group (1)), m.group (2))
    # end def load

    def save (self, f):
        for l in self.lines:
            print ('%d %s' % l, file = f)
    # end def save

# end class Program
