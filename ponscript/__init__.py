from ponscript.pon_datatypes import (
    Tag, PonError, ParseError, LabelNotFoundError, LoadError, EvalError, to_text,
)
from ponscript.pon_parser import ScriptParser, parse_script
from ponscript.pon_script import Script
from ponscript.pon_evaluator import Evaluator, ExpressionEvaluator, VariableContext
from ponscript.pon_conductor import Conductor, ConductorHost
from ponscript.pon_resource import Resource
from ponscript.pon_runtime import ConsoleHost, Player, PlayResult, make_player

__all__ = [
    "Tag", "PonError", "ParseError", "LabelNotFoundError", "LoadError", "EvalError", "to_text",
    "ScriptParser", "parse_script", "Script",
    "Evaluator", "ExpressionEvaluator", "VariableContext",
    "Conductor", "ConductorHost", "Resource",
    "ConsoleHost", "Player", "PlayResult", "make_player",
]
