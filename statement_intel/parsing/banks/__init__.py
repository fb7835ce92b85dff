from .natwest import NatWestStatementParser
from .barclays import BarclaysStatementParser
from .hsbc import HSBCStatementParser

PARSERS = {
    'NatWest': NatWestStatementParser,
    'Barclays': BarclaysStatementParser,
    'HSBC': HSBCStatementParser,
}

__all__ = [
    'NatWestStatementParser',
    'BarclaysStatementParser',
    'HSBCStatementParser',
    'PARSERS',
]
