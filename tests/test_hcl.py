import io

import pytest

from y86tools.hcl import (
    HclError,
    HclGenerator,
    NodeType,
    concat,
    make_num,
    make_quote,
    make_var,
)

HEADER = 'char simname[] = "Y86-64 Processor";\n'


def generator(simname=""):
    out = io.StringIO()
    return out, HclGenerator(out, simname)


def test_header_default_name():
    out, _ = generator()
    assert out.getvalue() == HEADER


def test_header_with_name():
    out, _ = generator("seq-std.hcl")
    assert out.getvalue() == 'char simname[] = "Y86-64 Processor: seq-std.hcl";\n'


def test_make_quote_strips_quotes():
    node = make_quote("'icode'")
    assert node.sval == "icode"
    assert node.type is NodeType.QUOTE


def test_concat_links_lists():
    a, b, c = make_num("1"), make_num("2"), make_num("3")
    head = concat(concat(a, b), c)
    assert [n.sval for n in head] == ["1", "2", "3"]
    assert concat(None, b) is b


def test_gen_funct_integer_variable():
    out, gen = generator()
    gen.add_arg(make_var("A"), make_quote("'x'"), False)
    gen.gen_funct(make_var("f"), make_var("A"), False)
    assert out.getvalue() == HEADER + "long long gen_f()\n{\n    return (x);\n}\n\n"


def test_gen_funct_case_with_default():
    out, gen = generator()
    gen.add_arg(make_var("b"), make_quote("'bv'"), True)
    first = gen.make_case(make_var("b"), make_num("3"))
    default = gen.make_case(make_num("1"), make_num("0"))
    gen.gen_funct(make_var("g"), concat(first, default), False)
    body = out.getvalue()[len(HEADER):].splitlines()
    assert body[2] == "    return ((bv) ? 3 : 0);"


def test_and_requires_boolean():
    _, gen = generator()
    gen.add_arg(make_var("A"), make_quote("'a'"), False)
    with pytest.raises(HclError):
        gen.make_and(make_var("A"), make_num("1"))


def test_unknown_symbol():
    _, gen = generator()
    with pytest.raises(HclError):
        gen.make_not(make_var("missing"))


def test_non_boolean_number():
    _, gen = generator()
    with pytest.raises(HclError):
        gen.make_not(make_num("2"))


def test_show_expr_and():
    _, gen = generator()
    gen.add_arg(make_var("A"), make_quote("'a'"), True)
    gen.add_arg(make_var("B"), make_quote("'b'"), True)
    expr = gen.make_and(make_var("A"), make_var("B"))
    assert gen.show_expr(expr) == "(A & B)"


def test_finish_reports_unreferenced():
    _, gen = generator()
    gen.add_arg(make_var("used"), make_quote("'u'"), True)
    gen.add_arg(make_var("idle"), make_quote("'i'"), True)
    gen.make_not(make_var("used"))
    assert gen.finish(True) == ["idle"]
    assert gen.finish(False) == []


def test_insert_code_copies_text():
    out, gen = generator()
    gen.insert_code(make_quote("'#include <stdio.h>'"))
    assert out.getvalue().endswith("#include <stdio.h>\n")


def test_symbol_limit():
    _, gen = generator()
    for i in range(100):
        gen.add_arg(make_var(f"s{i}"), make_quote("'q'"), False)
    with pytest.raises(HclError):
        gen.add_arg(make_var("extra"), make_quote("'q'"), False)