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

from argparse import ArgumentParser
from io import StringIO
import numpy as np
import operator
import logging
import string
import sys
from . import tokenizer
from .program import Program

log = logging.getLogger ('tinybasic')

# Returned as next line index by END
STOP = -1

def int32 (v):
    """ Wrap an integer to signed 32 bit, all arithmetic overflows
        silently this way.
    >>> int32 (2**31 - 1)
    2147483647
    >>> int32 (2**31)
    -2147483648
    >>> int32 (-2**31 - 1)
    2147483647
    """
    return ((v + 0x80000000) & 0xFFFFFFFF) - 0x80000000
# end def int32

def fun_div (a, b):
    """ Integer division truncating toward zero, division by zero is 0
    >>> fun_div (7, 2)
    3
    >>> fun_div (-7, 2)
    -3
    >>> fun_div (10, 0)
    0
    >>> fun_div (-2**31, -1)
    -2147483648
    """
    if b == 0:
        log.debug ('Division by zero: %d/0 evaluates to 0', a)
        return 0
    q = abs (a) // abs (b)
    if (a < 0) != (b < 0):
        q = -q
    return int32 (q)
# end def fun_div

class Variable_Bank:
    """ Scalar variables A-Z and arrays A-Z.
        Variables and dimensioned variables do not occupy the same
        namespace: A and A(0) are different cells.
    """

    max_dim = 65536

    def __init__ (self):
        self.reset ()
    # end def __init__

    def dimension (self, name, size):
        """ (Re-)allocate array, an invalid size keeps the old array """
        if not 1 <= size <= self.max_dim:
            log.debug ('DIM %s(%d) ignored, size out of range', name, size)
            return False
        self.dim [name] = np.zeros (size, dtype = np.int32)
        return True
    # end def dimension

    def reset (self):
        self.var = dict ((k, 0) for k in string.ascii_uppercase)
        self.dim = {}
    # end def reset

# end class Variable_Bank

class L_Value_Var:

    def __init__ (self, bank, name):
        self.bank = bank
        self.name = name
    # end def __init__

    def get (self):
        return self.bank.var [self.name]
    # end def get

    def set (self, value):
        self.bank.var [self.name] = value
    # end def set

# end class L_Value_Var

class L_Value_Dim:
    """ Array cell, reading outside the array (or of an array never
        dimensioned) returns 0, writing there is ignored.
    """

    def __init__ (self, bank, name, idx):
        self.bank = bank
        self.name = name
        self.idx  = idx
    # end def __init__

    @property
    def array (self):
        a = self.bank.dim.get (self.name)
        if a is None or not 0 <= self.idx < len (a):
            log.debug ('Index %s(%d) out of range', self.name, self.idx)
            return None
        return a
    # end def array

    def get (self):
        a = self.array
        if a is None:
            return 0
        return int (a [self.idx])
    # end def get

    def set (self, value):
        a = self.array
        if a is not None:
            a [self.idx] = value
    # end def set

# end class L_Value_Dim

class Token_Cursor:
    """ Parse position in the tokens of one statement
    >>> c = Token_Cursor (tokenizer.Tokenizer ().tokenize ('A (1)'))
    >>> c.accept ('VAR').value
    'A'
    >>> c.accept ('NUMBER') is None
    True
    >>> c.accept ('LPAREN', 'NUMBER').type
    'LPAREN'
    """

    # Parenthesized expressions nested deeper than this evaluate to 0
    max_depth = 100

    def __init__ (self, tokens):
        self.tokens = tokens
        self.pos    = 0
        self.depth  = 0
    # end def __init__

    @property
    def at_end (self):
        return self.pos >= len (self.tokens)
    # end def at_end

    def accept (self, *types):
        """ Consume and return next token if it has one of the given
            types, otherwise return None and leave position unchanged.
        """
        tok = self.peek ()
        if tok is not None and tok.type in types:
            self.pos += 1
            return tok
        return None
    # end def accept

    def peek (self, offset = 0):
        if self.pos + offset < len (self.tokens):
            return self.tokens [self.pos + offset]
        return None
    # end def peek

# end class Token_Cursor

class Interpreter_Test:
    """ This is used for testing: redirecting output, optionally
        redirecting input and passing the program as an iterable.
    """

    def __init__ (self, program = (), hook = None, input = None):
        self.program = program
        self.hook    = hook
        self.input   = input
        if isinstance (input, str):
            self.input = StringIO (input)
        self.output  = StringIO ()
    # end def __init__

# end class Interpreter_Test

class Interpreter:
    """ Interpreter session: owns the program, the variables and the
        console. Each statement is compiled once into a tuple
        (method, *args) whose arguments are closures evaluating
        expressions, executing it returns the index of the next line.
    """

    relops = dict \
        ( EQ = operator.eq
        , NE = operator.ne
        , LT = operator.lt
        , GT = operator.gt
        , LE = operator.le
        , GE = operator.ge
        )

    session_commands = set (('LOAD', 'SAVE', 'RUN', 'LIST', 'NEW', 'QUIT'))

    banner = \
        ( 'Tiny BASIC Interpreter'
        , 'Commands: LOAD, SAVE, RUN, LIST, NEW, QUIT'
        , 'Statements: PRINT, LET, GOTO, IF, END, DIM'
        , 'Variables: A-Z (integers). '
          'Type line number + statement to add a line.'
        , ''
        )

    def __init__ (self, args, test = None):
        self.args  = args
        self.test  = test
        self.input = sys.stdin
        if test is not None and test.input is not None:
            self.input = test.input
        elif args.input_file:
            self.input = open (args.input_file, 'r')
        self.ofile = sys.stdout
        if test is not None:
            self.ofile = test.output
        elif args.output_file:
            self.ofile = open (args.output_file, 'w')
        self.program   = Program (args.max_lines)
        self.bank      = Variable_Bank ()
        self.tokenizer = tokenizer.Tokenizer ()
        self.compiled  = {}
        # Index of the current line while running, None when idle
        self.cursor    = None
        self.next      = None
        self.space     = None
        if test is not None:
            self.program.load (test.program)
    # end def __init__

    @property
    def running (self):
        return self.cursor is not None
    # end def running

    def close_files (self):
        if self.test:
            return
        if self.input is not sys.stdin:
            self.input.close ()
        if self.ofile is not sys.stdout:
            self.ofile.close ()
            self.ofile = None
    # end def close_files

    def compile (self, text, cache = True):
        """ Compile statement text, the result only depends on the text
            so it is cached if cache is set.
        """
        if text in self.compiled:
            return self.compiled [text]
        cursor = Token_Cursor (self.tokenizer.tokenize (text))
        tok    = cursor.accept (*self.tokenizer.reserved)
        if tok is None:
            log.debug ('Unrecognized statement "%s" ignored', text)
            cmd = (self.cmd_nop,)
        else:
            cmd = getattr (self, 'p_' + tok.type.lower ()) (cursor)
        if cache:
            self.compiled [text] = cmd
        return cmd
    # end def compile

    def evaluate (self, text):
        """ Evaluate expression text against the current variables """
        return self.p_expr (Token_Cursor (self.tokenizer.tokenize (text))) ()
    # end def evaluate

    def execute (self, text, index, space):
        """ Execute the statement text located at index of program
            space, space is used for resolving GOTO and IF targets.
            Returns the index of the next line or STOP.
        """
        # Only lines of the stored program are cached
        cmd = self.compile (text, cache = space is self.program)
        self.space = space
        self.next  = index + 1
        cmd [0] (*cmd [1:])
        return self.next
    # end def execute

    def execute_direct (self, text):
        """ Execute a statement without line number. It is located in a
            program of its own so jumps will not leave this program.
        """
        space = Program (max_lines = 1)
        space.insert (0, text)
        self.execute (text, 0, space)
    # end def execute_direct

    def jump (self, number):
        """ Continue at line number, fall through if there is no such line
        """
        if number is None:
            log.debug ('Missing line number, falling through')
            return
        idx = self.space.find_index (number)
        if idx is None:
            log.debug ('Line %d not found, falling through', number)
            return
        self.next = idx
    # end def jump

    def load (self, filename):
        """ Replace the program with the one in filename. The file is
            read completely before the program is touched, so a file
            that cannot be opened or decoded leaves the program as is.
            Returns True on success.
        """
        try:
            with open (filename, 'r', encoding = 'utf-8') as f:
                lines = f.readlines ()
        except (OSError, UnicodeDecodeError) as err:
            log.debug ('LOAD %s: %s', filename, err)
            self.message ('Cannot open file: %s' % filename)
            return False
        self.program.load (lines)
        self.compiled = {}
        return True
    # end def load

    def message (self, s, end = None):
        print (s, end = end, file = self.ofile, flush = True)
    # end def message

    def run (self):
        """ Run the program from the first line with all variables reset.
            Stops at END, when running off either end of the program,
            or after args.max_steps executed lines if this is set.
        """
        self.bank.reset ()
        max_steps = self.args.max_steps
        steps     = 0
        if self.program:
            self.cursor = 0
        while self.running:
            if max_steps is not None and steps >= max_steps:
                log.debug ('Stopped after %d steps', steps)
                break
            if self.test and self.test.hook:
                self.test.hook (self)
            line = self.program [self.cursor]
            nxt  = self.execute (line.text, self.cursor, self.program)
            steps += 1
            if nxt == STOP or not 0 <= nxt < len (self.program):
                nxt = None
            self.cursor = nxt
        self.cursor = None
    # end def run

    # SESSION

    def process_input (self, line):
        """ Process one line of console input, returns True when the
            session should end.
        """
        line = line.strip ()
        if not line:
            return False
        m = self.program.line_re.match (line)
        if m:
            self.program.insert (int (m.group (1)), m.group (2))
            return False
        word = line.split (None, 1)
        if word [0] in self.session_commands:
            arg = ''
            if len (word) > 1:
                arg = word [1]
            return getattr (self, 'do_' + word [0].lower ()) (arg)
        self.execute_direct (line)
        return False
    # end def process_input

    def repl (self):
        for l in self.banner:
            self.message (l)
        while True:
            self.message ('> ', end = '')
            line = self.input.readline ()
            if not line:
                break
            if self.process_input (line):
                break
        self.message ('Goodbye.')
    # end def repl

    def do_list (self, arg):
        for l in self.program.list ():
            self.message ('%d %s' % l)
    # end def do_list

    def do_load (self, arg):
        if not arg:
            self.message ('Usage: LOAD filename')
            return
        if self.load (arg):
            self.message ('Loaded %s' % arg)
    # end def do_load

    def do_new (self, arg):
        self.program.clear ()
        self.bank.reset ()
        self.compiled = {}
        self.message ('Program cleared.')
    # end def do_new

    def do_quit (self, arg):
        return True
    # end def do_quit

    def do_run (self, arg):
        if not self.program:
            self.message ('No program.')
            return
        self.run ()
    # end def do_run

    def do_save (self, arg):
        if not arg:
            self.message ('Usage: SAVE filename')
            return
        try:
            f = open (arg, 'w', encoding = 'utf-8')
        except OSError as err:
            log.debug ('SAVE %s: %s', arg, err)
            self.message ('Cannot create file: %s' % arg)
            return
        with f:
            self.program.save (f)
        self.message ('Saved %s' % arg)
    # end def do_save

    # COMMANDS

    def cmd_dim (self, name, size):
        self.bank.dimension (name, size ())
    # end def cmd_dim

    def cmd_end (self):
        self.next = STOP
    # end def cmd_end

    def cmd_goto (self, number):
        self.jump (number)
    # end def cmd_goto

    def cmd_if (self, cond, number):
        if cond ():
            self.jump (number)
    # end def cmd_if

    def cmd_let (self, lhs, expr):
        lhs ().set (expr ())
    # end def cmd_let

    def cmd_nop (self):
        pass
    # end def cmd_nop

    def cmd_print (self, printlist):
        l = []
        for v in printlist:
            if v is None:
                l.append (' ')
            elif callable (v):
                l.append ('%d' % v ())
            else:
                l.append (v)
        self.message (''.join (l))
    # end def cmd_print

    # PARSER
    # Each p_ method documents the part of the grammar it parses.
    # Parsing never fails: missing parts are skipped and whatever
    # follows the recognized part of a statement is ignored.

    def p_dim (self, cur):
        """
            dim-statement : DIM VAR LPAREN expr RPAREN
        """
        var = cur.accept ('VAR')
        if var is None or not cur.accept ('LPAREN'):
            return (self.cmd_nop,)
        size = self.p_expr (cur)
        cur.accept ('RPAREN')
        return (self.cmd_dim, var.value, size)
    # end def p_dim

    def p_end (self, cur):
        """
            end-statement : END
        """
        return (self.cmd_end,)
    # end def p_end

    def p_goto (self, cur):
        """
            goto-statement : GOTO NUMBER
        """
        return (self.cmd_goto, self._line_number (cur))
    # end def p_goto

    def p_if (self, cur):
        """
            if-statement : IF condition THEN NUMBER
                         | IF condition THEN GOTO NUMBER
                         | IF condition NUMBER
        """
        cond = self.p_condition (cur)
        if cur.accept ('THEN'):
            cur.accept ('GOTO')
        return (self.cmd_if, cond, self._line_number (cur))
    # end def p_if

    def p_let (self, cur):
        """
            let-statement : LET VAR EQ expr
                          | LET VAR LPAREN expr RPAREN EQ expr
        """
        var = cur.accept ('VAR')
        if var is None:
            return (self.cmd_nop,)
        name = var.value
        if cur.accept ('LPAREN'):
            idx = self.p_expr (cur)
            cur.accept ('RPAREN')
            def lhs ():
                return L_Value_Dim (self.bank, name, idx ())
        else:
            def lhs ():
                return L_Value_Var (self.bank, name)
        cur.accept ('EQ')
        return (self.cmd_let, lhs, self.p_expr (cur))
    # end def p_let

    def p_print (self, cur):
        """
            print-statement : PRINT
                            | PRINT printlist
            printlist       : item
                            | printlist COMMA
                            | printlist COMMA item
            item            : STRING_DQ
                            | expr
        """
        # None in printlist marks a comma
        printlist = []
        while not cur.at_end:
            s = cur.accept ('STRING_DQ')
            if s is not None:
                printlist.append (s.value)
            else:
                printlist.append (self.p_expr (cur))
            if not cur.accept ('COMMA'):
                break
            printlist.append (None)
        return (self.cmd_print, printlist)
    # end def p_print

    def _line_number (self, cur):
        tok = cur.accept ('NUMBER')
        if tok is None:
            return None
        return tok.value
    # end def _line_number

    # EXPRESSIONS

    def p_condition (self, cur):
        """
            condition : expr EQ expr
                      | expr NE expr
                      | expr LT expr
                      | expr GT expr
                      | expr LE expr
                      | expr GE expr
        """
        f1 = self.p_expr (cur)
        op = cur.peek ()
        nx = cur.peek (1)
        # '==' is not a comparison
        if  (  op is None
            or op.type not in self.relops
            or op.type == 'EQ' and nx is not None
               and nx.type == 'EQ' and nx.lexpos == op.lexpos + 1
            ):
            log.debug ('Missing comparison, condition is false')
            def x ():
                return False
            return x
        cur.accept (op.type)
        f3  = self.p_expr (cur)
        cmp = self.relops [op.type]
        def x ():
            return cmp (f1 (), f3 ())
        return x
    # end def p_condition

    def p_expr (self, cur):
        """
            expr : term
                 | expr PLUS term
                 | expr MINUS term
        """
        x = self.p_term (cur)
        while True:
            op = cur.accept ('PLUS', 'MINUS')
            if op is None:
                return x
            x = self._twoop (op.type, x, self.p_term (cur))
    # end def p_expr

    def p_term (self, cur):
        """
            term : primary
                 | term TIMES primary
                 | term DIVIDE primary
        """
        x = self.p_primary (cur)
        while True:
            op = cur.accept ('TIMES', 'DIVIDE')
            if op is None:
                return x
            x = self._twoop (op.type, x, self.p_primary (cur))
    # end def p_term

    def p_primary (self, cur):
        """
            primary : NUMBER
                    | MINUS primary
                    | LPAREN expr RPAREN
                    | VAR
                    | VAR LPAREN expr RPAREN
        """
        if cur.accept ('LPAREN'):
            return self._nested (cur)
        # Negating twice is the identity even for the smallest int32
        neg = False
        while cur.accept ('MINUS'):
            neg = not neg
        if neg:
            p2 = self.p_primary (cur)
            def x ():
                return int32 (- p2 ())
            return x
        tok = cur.accept ('NUMBER')
        if tok is not None:
            v = int32 (tok.value)
            def x ():
                return v
            return x
        tok = cur.accept ('VAR')
        if tok is None:
            # Nothing we can parse as a value
            def x ():
                return 0
            return x
        name = tok.value
        if cur.accept ('LPAREN'):
            idx = self._nested (cur)
            def x ():
                return L_Value_Dim (self.bank, name, idx ()).get ()
            return x
        def x ():
            return self.bank.var [name]
        return x
    # end def p_primary

    def _nested (self, cur):
        """ Expression after an opening parenthesis up to the closing one
        """
        if cur.depth >= cur.max_depth:
            log.debug ('Nesting deeper than %d levels, using 0', cur.max_depth)
            def x ():
                return 0
            return x
        cur.depth += 1
        x = self.p_expr (cur)
        cur.depth -= 1
        cur.accept ('RPAREN')
        return x
    # end def _nested

    def _twoop (self, op, f1, f3):
        if op == 'PLUS':
            def x ():
                return int32 (f1 () + f3 ())
        elif op == 'MINUS':
            def x ():
                return int32 (f1 () - f3 ())
        elif op == 'TIMES':
            def x ():
                return int32 (f1 () * f3 ())
        elif op == 'DIVIDE':
            def x ():
                return fun_div (f1 (), f3 ())
        return x
    # end def _twoop

# end class Interpreter

def options (argv):
    cmd = ArgumentParser ()
    cmd.add_argument \
        ( 'program'
        , help  = 'Basic program to run, start interactive session if missing'
        , nargs = '?'
        )
    cmd.add_argument \
        ( '-d', '--debug'
        , help   = 'Write diagnostics to the log file'
        , action = 'store_true'
        )
    cmd.add_argument \
        ( '-i', '--input-file'
        , help = 'Read input from file instead of stdin'
        )
    cmd.add_argument \
        ( '-l', '--log-file'
        , help    = 'Log file for --debug, default: %(default)s'
        , default = 'basic.log'
        )
    cmd.add_argument \
        ( '-m', '--max-lines'
        , help    = 'Maximum number of program lines, default: %(default)s'
        , type    = int
        , default = 1000
        )
    cmd.add_argument \
        ( '-o', '--output-file'
        , help = 'Write output to given file'
        )
    cmd.add_argument \
        ( '-s', '--max-steps'
        , help = 'Stop RUN after executing this many lines'
        , type = int
        )
    args = cmd.parse_args (argv)
    return args
# end def options

def main (argv = sys.argv [1:]):
    args = options (argv)
    if args.debug:
        logging.basicConfig \
            ( level    = logging.DEBUG
            , filename = args.log_file
            , filemode = 'w'
            , format   = '%(filename)10s: %(lineno)5d: %(message)s'
            )
    interpreter = Interpreter (args)
    try:
        if args.program:
            if interpreter.load (args.program):
                interpreter.run ()
        else:
            interpreter.repl ()
    finally:
        interpreter.close_files ()
# end def main

if __name__ == '__main__':
    main ()
