"""
Shared pytest fixtures for the CBR pipeline test suite.
"""

import pytest


# Small hardcoded documents – same shape as what the CBR API returns.
# Using fixed documents means tests are fast, deterministic, and don't hit the API.
DIRECTORY_XML = """<?xml version="1.0" encoding="windows-1251"?>
<Valuta name="Foreign Currency Market Lib">
    <Item ID="R01010">
        <Name>Австралийский доллар</Name>
        <EngName>Australian Dollar</EngName>
        <Nominal>1</Nominal>
        <ParentCode>R01010    </ParentCode>
        <CharCode>AUD</CharCode>
    </Item>
    <Item ID="R01235">
        <Name>Доллар США</Name>
        <EngName>US Dollar</EngName>
        <Nominal>1</Nominal>
        <ParentCode>R01235    </ParentCode>
        <CharCode>USD</CharCode>
    </Item>
    <Item ID="R01820">
        <Name>Японская иена</Name>
        <EngName>Japanese Yen</EngName>
        <Nominal>100</Nominal>
        <CharCode>JPY</CharCode>
    </Item>
</Valuta>
"""


def daily_xml(date_attr: str, *valutes: tuple[str, str, str, str]) -> str:
    """Build a daily document from (code, nominal, value, vunit_rate) tuples."""
    body = "".join(
        f'<Valute ID="R{i:05d}"><NumCode>{i:03d}</NumCode><CharCode>{code}</CharCode>'
        f"<Nominal>{nominal}</Nominal><Name>{code} name</Name>"
        f"<Value>{value}</Value><VunitRate>{unit}</VunitRate></Valute>"
        for i, (code, nominal, value, unit) in enumerate(valutes)
    )
    return f'<?xml version="1.0" encoding="windows-1251"?><ValCurs Date="{date_attr}" name="Foreign Currency Market">{body}</ValCurs>'


@pytest.fixture
def directory_xml():
    return DIRECTORY_XML


@pytest.fixture
def rates_xml():
    return daily_xml(
        "17.10.2026",
        ("AUD", "1", "53,1020", "53,102"),
        ("USD", "1", "81,1234", "81,1234"),
        ("JPY", "100", "54,3210", "0,543210"),
    )


@pytest.fixture
def make_daily_xml():
    return daily_xml
