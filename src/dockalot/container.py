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


from typing import Callable, Generic, Iterator, Optional, TypeVar


T = TypeVar("T")

DEFAULT_NAME = "main"


class ConfigurationError(RuntimeError):

    def __init__(self, msg):
        super().__init__(msg)


class DuplicateNameError(ConfigurationError):

    def __init__(self, kind, name):
        super().__init__(f'Cannot register {kind} "{name}": it already exists')


class UnknownNameError(ConfigurationError, KeyError):

    def __init__(self, kind, name):
        ConfigurationError.__init__(self, f'No {kind} named "{name}"')

    def __str__(self):
        return self.args[0]


class NamedContainer(Generic[T]):
    """An insertion ordered collection of named things.

    Actions given to all() are run for every entry already in the container
    and are remembered so they also run for every entry registered later.
    """

    def __init__(self, factory: Callable[[str], T], kind: str = "entry"):
        self.__factory = factory
        self.__kind = kind
        self.__entries: dict[str, T] = {}
        self.__subscribers: list[Callable[[T], None]] = []

    def register(self, name: str, configure: Optional[Callable[[T], None]] = None) -> T:
        if name in self.__entries:
            raise DuplicateNameError(self.__kind, name)
        entry = self.__factory(name)
        if configure is not None:
            configure(entry)
        self.__entries[name] = entry
        try:
            # Copy: a subscriber may subscribe another action
            for action in list(self.__subscribers):
                action(entry)
        except BaseException:
            # A half wired entry must not stay registered
            del self.__entries[name]
            raise
        return entry

    def get_or_register(
        self, name: str, configure: Optional[Callable[[T], None]] = None
    ) -> T:
        entry = self.__entries.get(name)
        if entry is None:
            return self.register(name, configure)
        if configure is not None:
            configure(entry)
        return entry

    def all(self, action: Callable[[T], None]) -> None:
        self.__subscribers.append(action)
        for entry in list(self.__entries.values()):
            action(entry)

    @property
    def main(self) -> T:
        return self[DEFAULT_NAME]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.__entries.keys())

    def get(self, name: str) -> Optional[T]:
        return self.__entries.get(name)

    def __getitem__(self, name: str) -> T:
        try:
            return self.__entries[name]
        except KeyError:
            raise UnknownNameError(self.__kind, name) from None

    def __contains__(self, name) -> bool:
        return name in self.__entries

    def __iter__(self) -> Iterator[T]:
        return iter(list(self.__entries.values()))

    def __len__(self) -> int:
        return len(self.__entries)

    def __repr__(self):
        return f"<NamedContainer:{self.__kind} {list(self.__entries)}>"
