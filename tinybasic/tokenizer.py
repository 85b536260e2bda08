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

import logging
from ply import lex

log = logging.getLogger ('tinybasic')

class Tokenizer:
    """ Lexer for the statement text of one program line.
        Variables are single letters, so 'AB' is two variables.
        Statement keywords are only recognized when followed by a blank
        or the end of the text, 'PRINTX' is not a PRINT statement.
        Characters no rule accepts become an ILLEGAL token so that the
        parser stops there.
    """

    reserved = \
        [ 'DIM'
        , 'END'
        , 'GOTO'
        , 'IF'
        , 'LET'
        , 'PRINT'
        ]
    reserved = dict ((k, k) for k in reserved)

    tokens = \
        [ 'COMMA'
        , 'DIVIDE'
        , 'EQ'
        , 'GE'
        , 'GT'
        , 'ILLEGAL'
        , 'LE'
        , 'LPAREN'
        , 'LT'
        , 'MINUS'
        , 'NE'
        , 'NUMBER'
        , 'PLUS'
        , 'RPAREN'
        , 'STRING_DQ'
        , 'THEN'
        , 'TIMES'
        , 'VAR'
        ] + list (reserved)

    t_COMMA   = r','
    t_DIVIDE  = r'/'
    t_EQ      = r'='
    t_GE      = r'>='
    t_GT      = r'>'
    t_LE      = r'<='
    t_LPAREN  = r'\('
    t_LT      = r'<'
    t_MINUS   = r'-'
    t_NE      = r'<>'
    t_PLUS    = r'\+'
    t_RPAREN  = r'\)'
    t_TIMES   = r'\*'

    t_ignore  = '\t '

    def t_KEYWORD (self, t):
        r'(?:PRINT|LET|GOTO|IF|END|DIM)(?=[ \t]|$)'
        t.type = self.reserved [t.value]
        return t
    # end def t_KEYWORD

    def t_THEN (self, t):
        r'THEN'
        return t
    # end def t_THEN

    def t_NUMBER (self, t):
        r'[0-9]+'
        t.value = int (t.value)
        return t
    # end def t_NUMBER

    def t_STRING_DQ (self, t):
        r'"[^"]*"?'
        # An unterminated literal extends to the end of the line
        v = t.value [1:]
        if v.endswith ('"'):
            v = v [:-1]
        t.value = v
        return t
    # end def t_STRING_DQ

    def t_VAR (self, t):
        r'[A-Z]'
        return t
    # end def t_VAR

    def t_error (self, t):
        log.debug ("Illegal character '%s'", t.value [0])
        t.type  = 'ILLEGAL'
        t.value = t.value [0]
        t.lexer.skip (1)
        return t
    # end def t_error

    # END TOKEN DEFINITION

    def __init__ (self, **kw):
        self.lexer = lex.lex (module = self, **kw)
    # end def __init__

    def feed (self, s):
        self.lexer.input (s)
    # end def feed

    def token (self):
        return self.lexer.token ()
    # end def token

    def tokenize (self, s):
        """ Return the list of all tokens of s """
        self.feed (s)
        return list (iter (self.token, None))
    # end def tokenize

# end class Tokenizer
