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
Scenario module walking through the movie table operations.

Each scenario creates its table when needed, runs every operation of one
wrapper against it, logs what it sees and deletes the table at the end.
'''

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterator, Optional, Sequence

from movie_table_wrapper import MovieTableWrapper
from movies import Movie
from movies.exceptions import error_reason
from partiql_wrapper import PartiQLWrapper

logger = logging.getLogger()

DEMO_MOVIE = Movie('Test movie', 2001, {'rating': 3.5, 'plot': 'Test plot.'})
DEMO_MOVIE_UPDATE = Movie('Test movie', 2001, {'rating': 5.6, 'plot': 'New test plot.'})
QUERY_YEAR = 1985
SCAN_YEARS = (2001, 2010)
MAX_SAMPLE_MOVIES = 250

PARTIQL_SINGLE_MOVIE = Movie(
    'The Prancing of the Lambs',
    2005,
    {'plot': 'A movie about prancing lambs.', 'rating': 0},
)
PARTIQL_BATCH_MOVIES = [
    Movie('House PartiQL', 2023, {'plot': 'Wild parties at the house.', 'rating': 5.5}),
    Movie('House PartiQL 2', 2024, {'plot': 'Wilder parties at the house.', 'rating': 3.5}),
    Movie('House PartiQL 3', 2025, {'plot': 'Wildest parties at the house.', 'rating': 0.5}),
]


def _ensure_table(table_wrapper: MovieTableWrapper) -> None:
    if table_wrapper.exists():
        logger.info(f'Table {table_wrapper.table_name} already exists.')
        return

    logger.info(f'Creating table {table_wrapper.table_name}...')
    table_wrapper.create_table()
    logger.info(f'Created table {table_wrapper.table_name}.')


@contextmanager
def _scenario_table(table_wrapper: MovieTableWrapper) -> Iterator[MovieTableWrapper]:
    '''
    Provide the scenario table and delete it when the scenario ends, even on failure.
    '''
    _ensure_table(table_wrapper)
    try:
        yield table_wrapper
    except Exception as e:
        logger.error(
            f"Scenario on {table_wrapper.table_name} failed, deleting the table. "
            f"Here's why: {error_reason(e)}"
        )
        raise
    finally:
        table_wrapper.delete_table()
        logger.info(f'Deleted table {table_wrapper.table_name}.')


def run_movie_table_scenario(
    client: Any,
    table_name: str,
    movies: Sequence[Movie] = (),
    max_movies: Optional[int] = MAX_SAMPLE_MOVIES,
) -> None:
    '''
    Walk through the table and item operations of the movie table.

    Args:
        client: A boto3 DynamoDB client.
        table_name: The table to create, use and delete.
        movies: Sample movies to put in the table in batches.
        max_movies: Only the first max_movies sample movies are written.
    '''
    logger.info('Welcome to the Amazon DynamoDB getting started demo.')
    with _scenario_table(MovieTableWrapper(table_name, client)) as table_wrapper:
        table_wrapper.add_movie(DEMO_MOVIE)
        logger.info(f'Added {DEMO_MOVIE.title} to the movie table.')

        updated = table_wrapper.update_movie(DEMO_MOVIE_UPDATE)
        logger.info(f'Updated {DEMO_MOVIE.title} with new values: {updated}')

        written = table_wrapper.add_movie_batch(list(movies), max_movies)
        logger.info(f'Added {written} movies to the table.')

        movie = table_wrapper.get_movie(DEMO_MOVIE.title, DEMO_MOVIE.year)
        logger.info(f'Got movie: {movie}')

        released = table_wrapper.query(QUERY_YEAR)
        logger.info(f'Found {len(released)} movies released in {QUERY_YEAR}.')

        scanned = table_wrapper.scan(*SCAN_YEARS)
        logger.info(f'Found {len(scanned)} movies released between {SCAN_YEARS[0]} and {SCAN_YEARS[1]}.')

        table_wrapper.delete_movie(DEMO_MOVIE)
        logger.info(f'Removed {DEMO_MOVIE.title} from the table.')

    logger.info('Thanks for watching!')


def run_partiql_single_scenario(client: Any, table_name: str) -> None:
    '''
    Walk through single statement PartiQL operations on a movie table.

    Args:
        client: A boto3 DynamoDB client.
        table_name: The table to create, use and delete.
    '''
    logger.info('Welcome to the Amazon DynamoDB PartiQL single action demo.')
    with _scenario_table(MovieTableWrapper(table_name, client)):
        runner = PartiQLWrapper(table_name, client)

        runner.add_movie(PARTIQL_SINGLE_MOVIE)
        logger.info(f'Inserted {PARTIQL_SINGLE_MOVIE.title}.')

        movie = runner.get_movie(PARTIQL_SINGLE_MOVIE.title, PARTIQL_SINGLE_MOVIE.year)
        logger.info(f'Got movie: {movie}')

        new_rating = 6.6
        runner.update_movie(PARTIQL_SINGLE_MOVIE, new_rating)
        logger.info(f'Updated {PARTIQL_SINGLE_MOVIE.title} with a rating of {new_rating}.')

        movie = runner.get_movie(PARTIQL_SINGLE_MOVIE.title, PARTIQL_SINGLE_MOVIE.year)
        logger.info(f'Got movie: {movie}')

        projected = runner.get_all_movies()
        logger.info(f'Got the title and rating of {len(projected)} movies: {projected}')

        runner.delete_movie(PARTIQL_SINGLE_MOVIE)
        logger.info(f'Deleted {PARTIQL_SINGLE_MOVIE.title}.')

    logger.info('Thanks for watching!')


def run_partiql_batch_scenario(client: Any, table_name: str) -> None:
    '''
    Walk through batch PartiQL operations on a movie table.

    Args:
        client: A boto3 DynamoDB client.
        table_name: The table to create, use and delete.
    '''
    logger.info('Welcome to the Amazon DynamoDB PartiQL batch action demo.')
    with _scenario_table(MovieTableWrapper(table_name, client)):
        runner = PartiQLWrapper(table_name, client)

        added = runner.add_movie_batch(PARTIQL_BATCH_MOVIES)
        logger.info(f'Inserted {added} movies.')

        movies = runner.get_movie_batch(PARTIQL_BATCH_MOVIES)
        logger.info(f'Got {len(movies)} movies: {movies}')

        new_ratings = [7.7, 4.4, 1.1]
        updated = runner.update_movie_batch(PARTIQL_BATCH_MOVIES, new_ratings)
        logger.info(f'Updated the ratings of {updated} movies.')

        movies = runner.get_movie_batch(PARTIQL_BATCH_MOVIES)
        logger.info(f'Got {len(movies)} movies: {movies}')

        deleted = runner.delete_movie_batch(PARTIQL_BATCH_MOVIES)
        logger.info(f'Deleted {deleted} movies.')

    logger.info('Thanks for watching!')
