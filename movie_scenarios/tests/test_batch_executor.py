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

# pylint: disable=missing-class-docstring, missing-function-docstring, missing-module-docstring, redefined-outer-name, unused-argument, protected-access
# mypy: disable-error-code=no-untyped-def

from abc import ABC
from dataclasses import dataclass, field
import importlib
import os
from typing import List, Optional
from unittest.mock import Mock, patch

import boto3
from botocore.exceptions import ClientError, EndpointConnectionError
from moto import mock_aws
import pytest

from movies import (
    BatchExecutionError,
    BatchExecutor,
    Delete,
    Insert,
    Movie,
    PointRead,
    Update,
    chunked,
)
from movies import config
from movie_table_wrapper import MovieTableWrapper


TABLE_NAME = 'test-movie-table'


def make_movies(count: int) -> List[Movie]:
    return [
        Movie(f'Movie {n}', 2000 + n % 10, {'rating': n / 2, 'plot': f'Plot {n}.'})
        for n in range(count)
    ]


def throttling_error() -> ClientError:
    return ClientError(
        {'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'Slow down'}},
        'BatchWriteItem',
    )


@pytest.fixture
def write_client():
    client = Mock()
    client.batch_write_item.return_value = {'UnprocessedItems': {}}
    return client


@pytest.fixture
def statement_client():
    client = Mock()
    client.batch_execute_statement.return_value = {'Responses': []}
    return client


@pytest.fixture()
def aws_setup():
    with mock_aws():
        os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'
        yield


@pytest.fixture()
def table_wrapper(aws_setup):
    wrapper = MovieTableWrapper(TABLE_NAME, boto3.client('dynamodb', region_name='us-east-1'))
    wrapper.create_table()
    return wrapper


@dataclass
class Scenario(ABC):
    name: str

    def __init__(self, name: str):
        self.name = name

    def __str__(self):
        return self.name


@dataclass
class ChunkingScenario(Scenario):
    length: int
    max_records: Optional[int]
    expected_sizes: List[int] = field(default_factory=list)


CHUNKING_SCENARIOS = [
    ChunkingScenario(name='empty', length=0, max_records=None, expected_sizes=[]),
    ChunkingScenario(name='single_item', length=1, max_records=None, expected_sizes=[1]),
    ChunkingScenario(name='exactly_one_batch', length=25, max_records=None, expected_sizes=[25]),
    ChunkingScenario(name='one_over_batch', length=26, max_records=None, expected_sizes=[25, 1]),
    ChunkingScenario(name='capped_by_max_records', length=50, max_records=30, expected_sizes=[25, 5]),
    ChunkingScenario(name='max_records_zero', length=30, max_records=0, expected_sizes=[]),
    ChunkingScenario(name='max_records_above_length', length=10, max_records=30, expected_sizes=[10]),
    ChunkingScenario(name='three_batches', length=60, max_records=None, expected_sizes=[25, 25, 10]),
]


@pytest.mark.parametrize('test_case', CHUNKING_SCENARIOS, ids=str)
def test_write_chunks(write_client, test_case: ChunkingScenario):
    movies = make_movies(test_case.length)
    executor = BatchExecutor(write_client)

    outcome = executor.write(TABLE_NAME, [Insert(movie) for movie in movies], test_case.max_records)

    calls = write_client.batch_write_item.call_args_list
    sizes = [len(call.kwargs['RequestItems'][TABLE_NAME]) for call in calls]
    assert sizes == test_case.expected_sizes
    assert outcome.count == sum(test_case.expected_sizes)
    assert outcome.error is None

    sent_titles = [
        request['PutRequest']['Item']['title']['S']
        for call in calls
        for request in call.kwargs['RequestItems'][TABLE_NAME]
    ]
    assert sent_titles == [movie.title for movie in movies[:sum(test_case.expected_sizes)]]


@pytest.mark.parametrize('test_case', CHUNKING_SCENARIOS, ids=str)
def test_execute_chunks(statement_client, test_case: ChunkingScenario):
    movies = make_movies(test_case.length)
    executor = BatchExecutor(statement_client)

    outcome = executor.execute(
        TABLE_NAME, [Delete.for_movie(movie) for movie in movies], test_case.max_records
    )

    calls = statement_client.batch_execute_statement.call_args_list
    assert [len(call.kwargs['Statements']) for call in calls] == test_case.expected_sizes
    assert outcome.count == sum(test_case.expected_sizes)

    sent_titles = [
        statement['Parameters'][0]['S']
        for call in calls
        for statement in call.kwargs['Statements']
    ]
    assert sent_titles == [movie.title for movie in movies[:sum(test_case.expected_sizes)]]


def test_chunked_preserves_order():
    items = list(range(53))

    chunks = list(chunked(items, 25))

    assert [len(chunk) for chunk in chunks] == [25, 25, 3]
    assert [item for chunk in chunks for item in chunk] == items


@pytest.mark.parametrize('size', [0, -1])
def test_chunked_rejects_non_positive_size(size):
    with pytest.raises(ValueError):
        list(chunked([1, 2, 3], size))


@pytest.mark.parametrize('batch_size', [0, 26])
def test_executor_rejects_batch_size_out_of_range(write_client, batch_size):
    with pytest.raises(ValueError):
        BatchExecutor(write_client, batch_size=batch_size)


def test_executor_rejects_negative_max_records(write_client):
    with pytest.raises(ValueError):
        BatchExecutor(write_client).write(TABLE_NAME, [Insert(make_movies(1)[0])], -1)


def test_smaller_batch_size(write_client):
    executor = BatchExecutor(write_client, batch_size=10)

    outcome = executor.write(TABLE_NAME, [Insert(movie) for movie in make_movies(25)])

    assert write_client.batch_write_item.call_count == 3
    assert outcome.count == 25


def test_write_skips_records_that_fail_to_marshal(write_client):
    movies = make_movies(3)
    bad_movie = Movie('Bad movie', 2001, {'poster': object()})
    operations = [Insert(movies[0]), Insert(bad_movie), Insert(movies[2])]

    outcome = BatchExecutor(write_client).write(TABLE_NAME, operations)

    requests = write_client.batch_write_item.call_args.kwargs['RequestItems'][TABLE_NAME]
    assert [request['PutRequest']['Item']['title']['S'] for request in requests] == [
        movies[0].title,
        movies[2].title,
    ]
    assert outcome.count == 2
    assert outcome.error is None


def test_write_sends_nothing_when_whole_chunk_fails_to_marshal(write_client):
    operations = [Insert(Movie(f'Bad {n}', 2001, {'poster': object()})) for n in range(3)]

    outcome = BatchExecutor(write_client).write(TABLE_NAME, operations)

    write_client.batch_write_item.assert_not_called()
    assert outcome.count == 0


def test_write_deletes(write_client):
    movies = make_movies(2)

    BatchExecutor(write_client).write(TABLE_NAME, [Delete.for_movie(movie) for movie in movies])

    requests = write_client.batch_write_item.call_args.kwargs['RequestItems'][TABLE_NAME]
    assert requests == [{'DeleteRequest': {'Key': movie.get_key()}} for movie in movies]


def test_write_stops_on_first_failed_chunk(write_client):
    write_client.batch_write_item.side_effect = [
        {'UnprocessedItems': {}},
        throttling_error(),
        {'UnprocessedItems': {}},
    ]
    executor = BatchExecutor(write_client)

    with pytest.raises(BatchExecutionError) as exc_info:
        executor.write(TABLE_NAME, [Insert(movie) for movie in make_movies(60)])

    assert write_client.batch_write_item.call_count == 2
    assert exc_info.value.outcome.count == 25
    assert isinstance(exc_info.value.__cause__, ClientError)
    assert exc_info.value.outcome.error is exc_info.value.__cause__


def test_write_continues_after_failed_chunk(write_client):
    write_client.batch_write_item.side_effect = [
        {'UnprocessedItems': {}},
        throttling_error(),
        {'UnprocessedItems': {}},
    ]
    executor = BatchExecutor(write_client, stop_on_error=False)

    with pytest.raises(BatchExecutionError) as exc_info:
        executor.write(TABLE_NAME, [Insert(movie) for movie in make_movies(60)])

    assert write_client.batch_write_item.call_count == 3
    assert exc_info.value.outcome.count == 35
    assert len(exc_info.value.outcome.errors) == 1


@pytest.mark.parametrize('call_name', ['batch_write_item', 'batch_execute_statement'])
def test_connection_error_stops_the_batch(call_name, caplog):
    client = Mock()
    getattr(client, call_name).side_effect = EndpointConnectionError(
        endpoint_url='https://dynamodb.us-east-1.amazonaws.com'
    )
    executor = BatchExecutor(client)
    operations = [Insert(movie) for movie in make_movies(30)]

    with pytest.raises(BatchExecutionError) as exc_info:
        if call_name == 'batch_write_item':
            executor.write(TABLE_NAME, operations)
        else:
            executor.execute(TABLE_NAME, operations)

    assert getattr(client, call_name).call_count == 1
    assert exc_info.value.outcome.count == 0
    assert isinstance(exc_info.value.__cause__, EndpointConnectionError)
    assert 'Could not connect to the endpoint URL' in caplog.text


def test_write_reports_unprocessed_items(write_client):
    movies = make_movies(3)
    unprocessed = [{'PutRequest': {'Item': movies[1].to_item()}}]
    write_client.batch_write_item.return_value = {'UnprocessedItems': {TABLE_NAME: unprocessed}}

    outcome = BatchExecutor(write_client).write(TABLE_NAME, [Insert(movie) for movie in movies])

    write_client.batch_write_item.assert_called_once()
    assert outcome.count == 3
    assert outcome.unprocessed == unprocessed


def test_read_skips_missing_items(statement_client):
    movies = make_movies(3)
    statement_client.batch_execute_statement.return_value = {
        'Responses': [
            {'TableName': TABLE_NAME, 'Item': movies[0].to_item()},
            {'TableName': TABLE_NAME},
            {'TableName': TABLE_NAME, 'Item': movies[2].to_item()},
        ]
    }

    outcome = BatchExecutor(statement_client).execute(
        TABLE_NAME, [PointRead.for_movie(movie) for movie in movies]
    )

    assert outcome.items == [movies[0], movies[2]]
    assert outcome.error is None


def test_read_drops_items_that_fail_to_decode(statement_client):
    movies = make_movies(2)
    statement_client.batch_execute_statement.return_value = {
        'Responses': [
            {'TableName': TABLE_NAME, 'Item': {'title': {'S': 'No year'}}},
            {'TableName': TABLE_NAME, 'Item': movies[1].to_item()},
        ]
    }

    outcome = BatchExecutor(statement_client).execute(
        TABLE_NAME, [PointRead.for_movie(movie) for movie in movies]
    )

    assert outcome.items == [movies[1]]


def test_statement_errors_are_reported(statement_client):
    error_response = {
        'Error': {'Code': 'ConditionalCheckFailed', 'Message': 'The conditional request failed'}
    }
    statement_client.batch_execute_statement.return_value = {
        'Responses': [{'TableName': TABLE_NAME}, error_response]
    }
    operations = [Update(movie.title, movie.year, {'info.rating': 1.0}) for movie in make_movies(2)]

    outcome = BatchExecutor(statement_client).execute(TABLE_NAME, operations)

    assert outcome.count == 2
    assert outcome.unprocessed == [error_response]
    assert outcome.error is None


def test_update_without_patch_is_skipped(statement_client):
    operations = [Update('Movie 0', 2000, {}), Update('Movie 1', 2001, {'info.rating': 2.0})]

    outcome = BatchExecutor(statement_client).execute(TABLE_NAME, operations)

    statements = statement_client.batch_execute_statement.call_args.kwargs['Statements']
    assert len(statements) == 1
    assert outcome.count == 1


def test_add_movie_batch_against_table(table_wrapper):
    movies = make_movies(30)

    with patch.object(
        table_wrapper.client,
        'batch_write_item',
        wraps=table_wrapper.client.batch_write_item,
    ) as batch_write_item:
        written = table_wrapper.add_movie_batch(movies, 30)

    assert written == 30
    assert [
        len(call.kwargs['RequestItems'][TABLE_NAME]) for call in batch_write_item.call_args_list
    ] == [25, 5]
    assert sorted(table_wrapper.scan(2000, 2009), key=lambda movie: movie.title) == sorted(
        [Movie(movie.title, movie.year, {'rating': movie.info['rating']}) for movie in movies],
        key=lambda movie: movie.title,
    )


def stored_movies(table_wrapper: MovieTableWrapper) -> dict:
    return {
        (movie.year, movie.title): movie
        for year in range(2000, 2010)
        for movie in table_wrapper.query(year)
    }


def test_add_movie_batch_is_an_upsert(table_wrapper):
    movies = make_movies(30)

    table_wrapper.add_movie_batch(movies)
    first = stored_movies(table_wrapper)
    table_wrapper.add_movie_batch(movies)
    second = stored_movies(table_wrapper)

    assert len(first) == 30
    assert first == second


@pytest.mark.parametrize('value, expected', [('30', 25), ('10', 10)])
def test_batch_size_setting_is_clamped(value, expected):
    try:
        with patch.dict(os.environ, {'BATCH_SIZE': value}):
            importlib.reload(config)
            assert config.CONFIG['batch_size'] == expected
            assert BatchExecutor(Mock(), batch_size=config.CONFIG['batch_size']).batch_size == expected
    finally:
        importlib.reload(config)
