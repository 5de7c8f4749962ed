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

import re


SEPARATOR_REGEX = re.compile(r"[^a-zA-Z0-9]+")


def to_camel_case(raw: str) -> str:
    """Turn a declared name into a capitalized segment usable in a task name.

    The name is split on every run of characters that are not letters or
    digits, and each piece gets its first character uppercased. The rest of
    each piece is kept as is, so "myImage" becomes "MyImage".

    Names that only differ in their separators collapse to the same segment
    ("my-image" and "my_image" both become "MyImage"). Nothing here tries
    to tell them apart.
    """
    pieces = [p for p in SEPARATOR_REGEX.split(raw) if p]
    return "".join(p[0].upper() + p[1:] for p in pieces)


def suffix_if_not(raw: str, suffix: str) -> str:
    if raw.endswith(suffix):
        return raw
    return raw + suffix


def normalize_as_path_prefix(raw: str) -> str:
    return suffix_if_not(raw, "/")
