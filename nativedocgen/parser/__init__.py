from .errors import SchSyntaxError
from .expression import parse_expression
from .grammar import parse_sch
