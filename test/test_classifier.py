from phpns.php.classifier import classify_site
from phpns.php.source import PhpSource
from phpns.php.types import ReferenceKind

TEXT = """<?php

namespace App;

use Lib\\Foo;
use Lib\\Bar as Baz;

/** @var Foo $x */
$a = new Foo();
$b = 'Foo';
$c = Foo::NAME;
echo Foo;
"""


def span(needle, offset=0):
    start = TEXT.index(needle) + offset
    return start, start + len("Foo")


class TestClassifySite:
    def setup_method(self):
        self.source = PhpSource(TEXT)

    def test_import_statement(self):
        start = TEXT.index("Lib\\Foo")
        assert classify_site(self.source, start, start + len("Lib\\Foo")) == ReferenceKind.IMPORT_STATEMENT

    def test_aliased_import_statement(self):
        start = TEXT.index("Lib\\Bar")
        assert classify_site(self.source, start, start + len("Lib\\Bar")) == ReferenceKind.IMPORT_STATEMENT

    def test_new_expression(self):
        assert classify_site(self.source, *span("new Foo", offset=4)) == ReferenceKind.DIRECT_REFERENCE

    def test_static_access(self):
        assert classify_site(self.source, *span("Foo::NAME")) == ReferenceKind.DIRECT_REFERENCE

    def test_docblock(self):
        assert classify_site(self.source, *span("@var Foo", offset=5)) == ReferenceKind.OTHER

    def test_string(self):
        assert classify_site(self.source, *span("'Foo'", offset=1)) == ReferenceKind.OTHER

    def test_bare_constant(self):
        assert classify_site(self.source, *span("echo Foo", offset=5)) == ReferenceKind.OTHER
