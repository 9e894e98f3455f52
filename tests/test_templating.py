import pytest

from xero_portal.templating import beautiful, if_cond, templates


@pytest.mark.parametrize("v1, operator, v2, expected", [
    (1, "==", "1", True),
    ("DRAFT", "==", "DRAFT", True),
    (1, "===", "1", False),
    (1, "===", 1, True),
    ("a", "!=", "b", True),
    (1, "!==", "1", True),
    (2, "<", 3, True),
    (3, "<=", 3, True),
    (2, ">", 3, False),
    (3, ">=", 2, True),
    ("a", "<", 1, False),
    (True, "&&", "", False),
    (False, "||", "yes", True),
    (1, "<>", 1, False),
])
def test_if_cond(v1, operator, v2, expected):
    assert if_cond(v1, operator, v2) is expected


def test_if_cond_with_missing_values():
    template = templates.env.from_string(
        "{% if if_cond(missing, '==', None) %}missing{% else %}present{% endif %}"
    )
    assert template.render() == "missing"


def test_if_cond_in_template():
    template = templates.env.from_string(
        "{% if if_cond(outcome, '==', 'Error') %}{{ err }}{% endif %}"
    )
    assert template.render(outcome="Error", err="Bad request") == "Bad request"
    assert template.render(outcome="Success", err="Bad request") == ""


def test_beautiful():
    assert beautiful({'Name': 'Jem The Cat'}) == '{\n    "Name": "Jem The Cat"\n}'


def test_debug_renders_nothing():
    template = templates.env.from_string("[{{ debug() }}][{{ debug(invoice) }}]")
    assert template.render(invoice={'InvoiceNumber': 'INV-001'}) == "[][]"
