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
Movie record module.

This module defines the Movie record stored in the sample tables and the
conversion between Python values and the DynamoDB attribute value format
({'S': ...}, {'N': ...}, {'M': ...}) used on the wire by the low level client.
'''

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .exceptions import MarshalError

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    return value


def marshal_value(value: Any) -> dict:
    '''
    Convert a Python value to a DynamoDB attribute value.

    Floats are stored as numbers through Decimal, since the serializer
    refuses binary floats.

    Raises:
        MarshalError: If the value has no attribute value representation.
    '''
    try:
        return _serializer.serialize(_to_dynamo(value))
    except (TypeError, ValueError, ArithmeticError) as e:
        raise MarshalError(f'Cannot marshal {value!r}: {e}') from e


def unmarshal_value(attribute_value: dict) -> Any:
    '''
    Convert a DynamoDB attribute value back to a Python value.

    Raises:
        MarshalError: If the attribute value is malformed.
    '''
    try:
        return _from_dynamo(_deserializer.deserialize(attribute_value))
    except (TypeError, ValueError, ArithmeticError, AttributeError, KeyError) as e:
        raise MarshalError(f'Cannot unmarshal {attribute_value!r}: {e}') from e


def marshal_list(values: list) -> list[dict]:
    '''Marshal a list of statement parameters.'''
    return [marshal_value(value) for value in values]


@dataclass(frozen=True)
class Movie:
    '''
    A movie in the catalog.

    The year is the partition key and the title the sort key. Both are
    required and, the record being frozen, cannot change once created.
    Everything else about the movie (rating, plot, ...) lives in the info map.

    Attributes:
        title: Title of the movie (sort key).
        year: Release year of the movie (partition key).
        info: Further attributes of the movie.
    '''

    title: str
    year: int
    info: dict = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title:
            raise MarshalError(f'Movie title must be a non-empty string: {self.title!r}')
        if isinstance(self.year, bool) or not isinstance(self.year, int):
            raise MarshalError(f'Movie year must be an integer: {self.year!r}')

    @property
    def key(self) -> dict:
        '''The primary key of the movie as plain values.'''
        return {'year': self.year, 'title': self.title}

    def get_key(self) -> dict:
        '''
        Get the primary key of the movie in attribute value format.

        Returns:
            The key, ready to pass as the Key of a low level client call.
        '''
        return {name: marshal_value(value) for name, value in self.key.items()}

    def to_item(self) -> dict:
        '''
        Marshal the movie into a DynamoDB item.

        Raises:
            MarshalError: If an info attribute cannot be marshaled.
        '''
        return {
            'year': marshal_value(self.year),
            'title': marshal_value(self.title),
            'info': marshal_value(self.info),
        }

    @classmethod
    def from_item(cls, item: dict) -> Movie:
        '''
        Unmarshal a DynamoDB item into a movie.

        Args:
            item: The item in attribute value format.

        Returns:
            The decoded movie.

        Raises:
            MarshalError: If the item is missing a key attribute or is malformed.
        '''
        if not item or 'title' not in item or 'year' not in item:
            raise MarshalError(f'Item is missing a key attribute: {item!r}')

        values = {name: unmarshal_value(value) for name, value in item.items()}
        info = values.get('info') or {}
        if not isinstance(info, dict):
            raise MarshalError(f'Item info must be a map: {info!r}')

        return cls(title=values['title'], year=values['year'], info=info)
