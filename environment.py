"""
Lox runtime environments
A scope maps names to values and links to the scope enclosing it
"""

from typing import Any, Dict, Optional

from tokens import Token
from error_handling import LoxRuntimeError


class Environment:
    """One lexical scope in the environment chain"""

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any) -> None:
        """Bind name in this scope, silently replacing an existing binding"""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look name up in this scope, then outward through the enclosing scopes"""
        env = self._resolve(name)
        return env.values[name.lexeme]

    def assign(self, name: Token, value: Any) -> None:
        """Overwrite the nearest existing binding of name; never declares"""
        env = self._resolve(name)
        env.values[name.lexeme] = value

    def contains(self, name: str) -> bool:
        env = self
        while env is not None:
            if name in env.values:
                return True
            env = env.enclosing
        return False

    def snapshot(self) -> Dict[str, Any]:
        """Every visible binding, inner scopes shadowing outer ones"""
        scopes = []
        env = self
        while env is not None:
            scopes.append(env.values)
            env = env.enclosing

        bindings: Dict[str, Any] = {}
        for values in reversed(scopes):
            bindings.update(values)
        return bindings

    def _resolve(self, name: Token) -> 'Environment':
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def __repr__(self) -> str:
        depth = 0
        env = self.enclosing
        while env is not None:
            depth += 1
            env = env.enclosing
        return f"Environment(depth={depth}, names={sorted(self.values)})"
