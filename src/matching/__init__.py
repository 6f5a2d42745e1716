from .criteria import SearchCriteria
from .predicate import Predicate, Clause, Compare, MemberOf, ContainsText, ContainsAll, AnyOf, evaluate
from .compiler import CriteriaCompiler, compile_criteria

__all__ = [
    'SearchCriteria',
    'Predicate',
    'Clause',
    'Compare',
    'MemberOf',
    'ContainsText',
    'ContainsAll',
    'AnyOf',
    'evaluate',
    'CriteriaCompiler',
    'compile_criteria'
]
