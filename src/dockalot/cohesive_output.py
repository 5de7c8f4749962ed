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


import collections
import sys
import threading
from typing import Optional, TextIO


class CohesiveOutput:
    """Keep the output of concurrently running work from interleaving.

    Only one CohesiveOutput streams straight to the console at a time. The
    others buffer what they are given, and the buffer is flushed in one go
    when their turn comes, which is in the order they were entered.
    """

    _lock: threading.Lock = threading.Lock()
    _active: Optional["CohesiveOutput"] = None
    _waiting: collections.deque = collections.deque()

    def __init__(self, name: str, stream: Optional[TextIO] = None):
        self._name = name
        self._stream = stream
        self._buffer = [f"> {name}\n"]
        self._buffer_lock = threading.Lock()
        self._streaming = False
        self._exited = False

    @property
    def name(self):
        return self._name

    @property
    def stream(self) -> TextIO:
        # Looked up late so that sys.stdout may be swapped out after creation
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str):
        with self._buffer_lock:
            if self._streaming:
                self.stream.write(text)
            else:
                self._buffer.append(text)

    def print(self, line: str = ""):
        self.write(line + "\n")

    @classmethod
    def _promote_next(cls):
        """Flush waiting outputs until one that is still open takes over."""
        while cls._waiting:
            candidate = cls._waiting.popleft()
            with candidate._buffer_lock:
                for text in candidate._buffer:
                    candidate.stream.write(text)
                candidate._buffer = []
                if not candidate._exited:
                    candidate._streaming = True
                    cls._active = candidate
                    return
        cls._active = None

    def __enter__(self):
        cls = type(self)
        with cls._lock:
            cls._waiting.append(self)
            if cls._active is None:
                cls._promote_next()
        return self

    def __exit__(self, t, v, tb):
        cls = type(self)
        with cls._lock:
            with self._buffer_lock:
                self._exited = True
                self._streaming = False
            if cls._active is self:
                cls._promote_next()
