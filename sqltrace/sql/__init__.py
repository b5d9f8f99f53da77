from .obfuscator import Obfuscator
from .obfuscator import PatternRule
from .obfuscator import PatternSet
from .obfuscator import Rule
from .obfuscator import obfuscate_sql
from .summarizer import summarize


__all__ = ["Obfuscator", "PatternRule", "PatternSet", "Rule", "obfuscate_sql", "summarize"]
