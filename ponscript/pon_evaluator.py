"""
Expression evaluation for `&entity` values and embedded code.

The conductor never evaluates anything itself; it goes through an
`Evaluator` bound to a `VariableContext`. `ExpressionEvaluator` is the
default implementation: a whitelisting walker over Python's `ast` that
reads and writes the script variable scopes and nothing else.
"""

import ast
import collections.abc
import operator
import textwrap
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ponscript.pon_datatypes import EvalError, to_text


@dataclass
class VariableContext:
    """The variable scopes visible to script expressions.

    `tmp` (tv) lives for one play session, `game` (gv) is saved with a
    game, `system` (sv) spans all saves, `macro_params` (mp) holds the
    parameters of the macro being expanded, if any.
    """
    tmp: Dict[str, Any] = field(default_factory=dict)
    game: Dict[str, Any] = field(default_factory=dict)
    system: Dict[str, Any] = field(default_factory=lambda: {"saveDataInfo": []})
    macro_params: Optional[Dict[str, Any]] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def bindings(self) -> Dict[str, Any]:
        names = {
            "tv": self.tmp,
            "gv": self.game,
            "sv": self.system,
            "mp": self.macro_params,
        }
        names.update(self.extras)
        return names


class Evaluator(ABC):
    """The evaluation capability the resource layer delegates to."""

    @abstractmethod
    def evaluate(self, expression: str, context: VariableContext) -> Any:
        raise NotImplementedError

    def execute(self, code: str, context: VariableContext) -> Any:
        return self.evaluate(code, context)


class ExpressionEvaluator(Evaluator):

    CONSTANTS = {
        "true": True,
        "false": False,
        "null": None,
        "True": True,
        "False": False,
        "None": None,
    }

    BINOPS = {
        ast.Add: operator.add,
        ast.Sub: operator.sub,
        ast.Mult: operator.mul,
        ast.Div: operator.truediv,
        ast.FloorDiv: operator.floordiv,
        ast.Mod: operator.mod,
        ast.Pow: operator.pow,
    }

    UNARY = {
        ast.UAdd: operator.pos,
        ast.USub: operator.neg,
        ast.Not: operator.not_,
    }

    COMPARE = {
        ast.Eq: operator.eq,
        ast.NotEq: operator.ne,
        ast.Lt: operator.lt,
        ast.LtE: operator.le,
        ast.Gt: operator.gt,
        ast.GtE: operator.ge,
        ast.In: lambda a, b: a in b,
        ast.NotIn: lambda a, b: a not in b,
        ast.Is: operator.is_,
        ast.IsNot: operator.is_not,
    }

    SAFE_BUILTINS = {
        "len": len,
        "int": int,
        "float": float,
        "str": to_text,
        "bool": bool,
        "min": min,
        "max": max,
        "abs": abs,
        "round": round,
    }

    def evaluate(self, expression: str, context: VariableContext) -> Any:
        try:
            tree = ast.parse(expression.strip(), mode="eval")
            return self._eval_node(tree.body, context.bindings())
        except EvalError:
            raise
        except Exception as e:
            raise EvalError(expression, e) from e

    def execute(self, code: str, context: VariableContext) -> Any:
        """Run statements; the value of the last bare expression is returned."""
        try:
            tree = ast.parse(textwrap.dedent(code).strip(), mode="exec")
            return self._exec_block(tree.body, context.bindings())
        except EvalError:
            raise
        except Exception as e:
            raise EvalError(code, e) from e

    # --- statements ---

    def _exec_block(self, statements: list, names: Dict[str, Any]) -> Any:
        result = None
        for stmt in statements:
            result = self._exec_stmt(stmt, names)
        return result

    def _exec_stmt(self, stmt: ast.stmt, names: Dict[str, Any]) -> Any:
        match stmt:
            case ast.Expr(value=value):
                return self._eval_node(value, names)
            case ast.Assign(targets=targets, value=value):
                result = self._eval_node(value, names)
                for target in targets:
                    self._assign(target, result, names)
                return None
            case ast.AugAssign(target=target, op=op, value=value):
                current = self._eval_node(target, names)
                result = self._binop(op, current, self._eval_node(value, names))
                self._assign(target, result, names)
                return None
            case ast.If(test=test, body=body, orelse=orelse):
                branch = body if self._eval_node(test, names) else orelse
                return self._exec_block(branch, names)
            case ast.Pass():
                return None
            case _:
                raise SyntaxError(f"statement not allowed: {type(stmt).__name__}")

    def _assign(self, target: ast.expr, value: Any, names: Dict[str, Any]) -> None:
        match target:
            case ast.Attribute(value=owner, attr=attr):
                container = self._eval_node(owner, names)
                key = attr
            case ast.Subscript(value=owner, slice=index):
                container = self._eval_node(owner, names)
                key = self._eval_node(index, names)
            case _:
                raise SyntaxError("only members of tv, gv, sv or mp can be assigned")
        if not isinstance(container, collections.abc.MutableMapping):
            raise TypeError(f"cannot assign into {type(container).__name__}")
        container[key] = value

    # --- expressions ---

    def _eval_node(self, node: ast.expr, names: Dict[str, Any]) -> Any:
        match node:
            case ast.Constant(value=value):
                return value
            case ast.Name(id=name):
                if name in names:
                    return names[name]
                if name in self.CONSTANTS:
                    return self.CONSTANTS[name]
                if name in self.SAFE_BUILTINS:
                    return self.SAFE_BUILTINS[name]
                raise NameError(f"unknown name '{name}'")
            case ast.Attribute(value=owner, attr=attr):
                container = self._eval_node(owner, names)
                if isinstance(container, collections.abc.Mapping):
                    return container[attr]
                raise TypeError(f"no member '{attr}' on {type(container).__name__}")
            case ast.Subscript(value=owner, slice=index):
                container = self._eval_node(owner, names)
                if isinstance(index, ast.Slice):
                    lower = self._eval_node(index.lower, names) if index.lower else None
                    upper = self._eval_node(index.upper, names) if index.upper else None
                    step = self._eval_node(index.step, names) if index.step else None
                    return container[lower:upper:step]
                return container[self._eval_node(index, names)]
            case ast.BinOp(left=left, op=op, right=right):
                return self._binop(op, self._eval_node(left, names), self._eval_node(right, names))
            case ast.UnaryOp(op=op, operand=operand):
                fn = self.UNARY.get(type(op))
                if fn is None:
                    raise SyntaxError(f"operator not allowed: {type(op).__name__}")
                return fn(self._eval_node(operand, names))
            case ast.BoolOp(op=ast.And(), values=values):
                result = True
                for v in values:
                    result = self._eval_node(v, names)
                    if not result:
                        return result
                return result
            case ast.BoolOp(op=ast.Or(), values=values):
                result = False
                for v in values:
                    result = self._eval_node(v, names)
                    if result:
                        return result
                return result
            case ast.Compare(left=left, ops=ops, comparators=comparators):
                lhs = self._eval_node(left, names)
                for op, comp in zip(ops, comparators):
                    rhs = self._eval_node(comp, names)
                    fn = self.COMPARE.get(type(op))
                    if fn is None:
                        raise SyntaxError(f"comparison not allowed: {type(op).__name__}")
                    if not fn(lhs, rhs):
                        return False
                    lhs = rhs
                return True
            case ast.IfExp(test=test, body=body, orelse=orelse):
                return self._eval_node(body if self._eval_node(test, names) else orelse, names)
            case ast.List(elts=elts) | ast.Tuple(elts=elts):
                return [self._eval_node(e, names) for e in elts]
            case ast.Dict(keys=keys, values=values):
                return {self._eval_node(k, names): self._eval_node(v, names) for k, v in zip(keys, values)}
            case ast.Call(func=ast.Name(id=fname), args=args, keywords=[]) if fname in self.SAFE_BUILTINS:
                return self.SAFE_BUILTINS[fname](*[self._eval_node(a, names) for a in args])
            case ast.Call():
                raise SyntaxError("only builtin functions may be called")
            case _:
                raise SyntaxError(f"expression not allowed: {type(node).__name__}")

    def _binop(self, op: ast.operator, left: Any, right: Any) -> Any:
        fn = self.BINOPS.get(type(op))
        if fn is None:
            raise SyntaxError(f"operator not allowed: {type(op).__name__}")
        # String concatenation renders the other operand, so "HP: " + tv.hp works
        if isinstance(op, ast.Add) and (isinstance(left, str) != isinstance(right, str)):
            return to_text(left) + to_text(right)
        return fn(left, right)
