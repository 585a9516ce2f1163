"""
The resource layer: locating and loading script files, caching parsed
scripts, and owning the variable scopes that script expressions see.
"""

import logging
import random
import string
from typing import Any, Dict, Optional

from ponscript import pon_file, pon_http
from ponscript.pon_datatypes import LoadError, ParseError
from ponscript.pon_evaluator import Evaluator, ExpressionEvaluator, VariableContext
from ponscript.pon_script import Script

logger = logging.getLogger(__name__)


def is_url(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


class Resource:
    """Loads scripts relative to `base_path` and evaluates script expressions.

    `base_path` may be a directory or an http(s) URL. Parsed scripts are
    cached by file path while both caching switches are on; callers always
    receive a clone with its own cursor.
    """

    def __init__(
        self,
        base_path: str = "./gamedata",
        game_version: str = "0.0.0",
        evaluator: Optional[Evaluator] = None,
        http_config: Optional[Dict[str, Any]] = None,
    ):
        self.base_path = self._fix_path(base_path)
        self.game_version = game_version
        self.enable_resource_cache = True
        self.enabled_script_cache = True
        self.http_config = dict(http_config or {})
        self.evaluator = evaluator or ExpressionEvaluator()
        self.variables = VariableContext()
        self.macro_info: Dict[str, Script] = {}
        self._script_cache: Dict[str, Script] = {}

    @staticmethod
    def _fix_path(path: str) -> str:
        return path[:-1] if path.endswith("/") else path

    # --- variables ---

    @property
    def tmp_var(self) -> Dict[str, Any]:
        return self.variables.tmp

    @property
    def game_var(self) -> Dict[str, Any]:
        return self.variables.game

    @property
    def system_var(self) -> Dict[str, Any]:
        return self.variables.system

    @property
    def macro_params(self) -> Optional[Dict[str, Any]]:
        return self.variables.macro_params

    def set_macro_params(self, params: Dict[str, Any]) -> None:
        self.variables.macro_params = params

    def clear_macro_params(self) -> None:
        self.variables.macro_params = None

    def clear_system_var(self) -> None:
        self.variables.system.clear()

    # --- macros ---

    def register_macro(self, name: str, body: Script) -> None:
        self.macro_info[name] = body

    def has_macro(self, name: str) -> bool:
        return self.macro_info.get(name) is not None

    def get_macro(self, name: str) -> Optional[Script]:
        return self.macro_info.get(name)

    def clear_macro_info(self) -> None:
        self.macro_info.clear()

    # --- evaluation ---

    def evaluate(self, expression: str) -> Any:
        return self.evaluator.evaluate(expression, self.variables)

    def execute(self, code: str) -> Any:
        return self.evaluator.execute(code, self.variables)

    # --- loading ---

    def get_path(self, file_path: str) -> str:
        """Resolve a script path against `base_path`.

        URLs pass through untouched. Paths under an http(s) base get a query
        string that either pins the game version or defeats caching.
        """
        if is_url(file_path):
            return file_path
        path = f"{self.base_path}/{file_path}"
        if is_url(self.base_path):
            if self.enable_resource_cache:
                path += f"?v={self.game_version}"
            else:
                token = "".join(random.choices(string.ascii_lowercase + string.digits, k=8))
                path += f"?x={token}"
        return path

    async def load_text(self, file_path: str) -> str:
        path = self.get_path(file_path)
        try:
            if is_url(path):
                return await pon_http.http_get_text(path, self.http_config)
            return await pon_file.file_get_text(path)
        except Exception as e:
            logger.error("failed to load %s: %s", path, e)
            raise LoadError(file_path, e) from e

    async def load_script(self, file_path: str) -> Script:
        use_cache = self.enable_resource_cache and self.enabled_script_cache
        if use_cache and file_path in self._script_cache:
            logger.debug("script cache hit: %s", file_path)
            return self._script_cache[file_path].clone()

        text = await self.load_text(file_path)
        try:
            script = Script.from_text(text, file_path)
        except ParseError as e:
            logger.error("failed to parse %s: %s", file_path, e.message)
            raise LoadError(file_path, e) from e

        if use_cache:
            self._script_cache[file_path] = script
            return script.clone()
        return script

    def clear_script_cache(self) -> None:
        self._script_cache.clear()
