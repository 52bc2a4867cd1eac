# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

'''
Operation descriptors carried by batch calls.

Each descriptor knows how to render itself into the two request shapes the
batch executor sends:
- a BatchWriteItem write request (Insert and Delete only)
- a BatchExecuteStatement PartiQL statement with marshaled parameters

Batches are homogeneous: the executor accepts a sequence of one descriptor
kind, expressed by the WriteBatch and StatementBatch aliases below, so a
mixed sequence is a type error rather than something checked at runtime.
'''

from __future__ import annotations

from abc import ABC, abstractmethod
import re
from dataclasses import dataclass, field
from typing import Any, Sequence, Union

from .movie import Movie, marshal_list

from .exceptions import MarshalError

# Dotted attribute path, e.g. info.rating
ATTRIBUTE_PATH = re.compile(r'[A-Za-z_]\w*(\.[A-Za-z_]\w*)*')


class Operation(ABC):
    '''
    Abstract base class for a single logical operation of a batch.
    '''

    @abstractmethod
    def to_statement(self, table_name: str) -> dict:
        '''
        Render the operation as a PartiQL batch statement request.

        Args:
            table_name: The table the statement runs against.

        Returns:
            A dict with the Statement and its Parameters in attribute value format.

        Raises:
            MarshalError: If a parameter cannot be marshaled.
        '''


class WriteOperation(Operation):
    '''
    An operation that BatchWriteItem can carry.
    '''

    @abstractmethod
    def to_write_request(self) -> dict:
        '''
        Render the operation as a BatchWriteItem write request.

        Raises:
            MarshalError: If the record cannot be marshaled.
        '''


@dataclass(frozen=True)
class Insert(WriteOperation):
    '''Put a whole movie, replacing any movie with the same key.'''

    movie: Movie

    def to_write_request(self) -> dict:
        return {'PutRequest': {'Item': self.movie.to_item()}}

    def to_statement(self, table_name: str) -> dict:
        return {
            'Statement': f"INSERT INTO \"{table_name}\" VALUE {{'title': ?, 'year': ?, 'info': ?}}",
            'Parameters': marshal_list([self.movie.title, self.movie.year, self.movie.info]),
        }


@dataclass(frozen=True)
class PointRead(Operation):
    '''Read the movie stored under a key.'''

    title: str
    year: int

    @classmethod
    def for_movie(cls, movie: Movie) -> PointRead:
        return cls(movie.title, movie.year)

    def to_statement(self, table_name: str) -> dict:
        return {
            'Statement': f'SELECT * FROM "{table_name}" WHERE title=? AND year=?',
            'Parameters': marshal_list([self.title, self.year]),
        }


@dataclass(frozen=True)
class Update(Operation):
    '''
    Set attributes of the movie stored under a key.

    Attributes:
        title: Title of the movie to update.
        year: Release year of the movie to update.
        patch: Attribute paths mapped to their new value, e.g. {'info.rating': 7.5}.
    '''

    title: str
    year: int
    patch: dict[str, Any] = field(default_factory=dict, hash=False)

    def to_statement(self, table_name: str) -> dict:
        if not self.patch:
            raise MarshalError(f'Update of {self.title} ({self.year}) has nothing to set')

        for path in self.patch:
            if not isinstance(path, str) or not ATTRIBUTE_PATH.fullmatch(path):
                raise MarshalError(
                    f'Update of {self.title} ({self.year}) has an invalid attribute path: {path!r}'
                )

        set_clauses = ' '.join(f'SET {path}=?' for path in self.patch)
        return {
            'Statement': f'UPDATE "{table_name}" {set_clauses} WHERE title=? AND year=?',
            'Parameters': marshal_list([*self.patch.values(), self.title, self.year]),
        }


@dataclass(frozen=True)
class Delete(WriteOperation):
    '''Delete the movie stored under a key.'''

    title: str
    year: int

    @classmethod
    def for_movie(cls, movie: Movie) -> Delete:
        return cls(movie.title, movie.year)

    def to_write_request(self) -> dict:
        return {'DeleteRequest': {'Key': Movie(self.title, self.year).get_key()}}

    def to_statement(self, table_name: str) -> dict:
        return {
            'Statement': f'DELETE FROM "{table_name}" WHERE title=? AND year=?',
            'Parameters': marshal_list([self.title, self.year]),
        }


WriteBatch = Union[Sequence[Insert], Sequence[Delete]]
StatementBatch = Union[
    Sequence[Insert],
    Sequence[PointRead],
    Sequence[Update],
    Sequence[Delete],
]
