# Copyright 2024 Shane Loretz.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


from typing import Any, Callable


class MissingValueError(RuntimeError):

    def __init__(self, name):
        super().__init__(f'Property "{name}" has no value')


class Provider:
    """A value that is computed when it is read, not when it is declared."""

    def __init__(self, compute: Callable[[], Any], name: str = "<provider>"):
        self.__compute = compute
        self.__name = name

    @property
    def name(self):
        return self.__name

    def get(self):
        return self.__compute()

    def __repr__(self):
        return f"<Provider:{self.name}>"


class Property(Provider):
    """A settable deferred value.

    The value may be a plain value, another Provider, or a zero argument
    callable. Callables and providers are resolved on every read, so a
    property set before some other piece of configuration ran still sees
    the final state at the time the task using it executes.
    """

    _UNSET = object()

    def __init__(self, name: str, convention=_UNSET):
        super().__init__(self.__resolve, name=name)
        self.__value = Property._UNSET
        self.__convention = convention

    def set(self, value) -> None:
        self.__value = value

    def convention(self, value) -> "Property":
        """Set the value used when nothing was explicitly set."""
        self.__convention = value
        return self

    @property
    def is_present(self) -> bool:
        return (
            self.__value is not Property._UNSET
            or self.__convention is not Property._UNSET
        )

    def or_none(self):
        if not self.is_present:
            return None
        return self.get()

    def __resolve(self):
        value = self.__value
        if value is Property._UNSET:
            value = self.__convention
        if value is Property._UNSET:
            raise MissingValueError(self.name)
        return _unwrap(value)

    def __repr__(self):
        return f"<Property:{self.name}>"


def _unwrap(value):
    if isinstance(value, Provider):
        return value.get()
    if callable(value):
        return value()
    return value
