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
PartiQL wrapper module for running movie table statements.

This module provides single statement operations, sent with ExecuteStatement,
and batch operations, sent through the BatchExecutor with
BatchExecuteStatement in calls of at most 25 statements.
'''

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from movies import BatchExecutor, Delete, Insert, Movie, PointRead, Update
from movies.exceptions import error_reason
from movies.movie import unmarshal_value

logger = logging.getLogger()


class PartiQLWrapper:
    '''
    A wrapper class for PartiQL statements on the movie table.

    Attributes:
        client: The boto3 DynamoDB client instance.
        table_name: The name of the movie table.
        batch_executor: Executor used for the batch statements.
    '''

    def __init__(self, table_name: str, client: Optional[Any] = None) -> None:
        self.client = client or boto3.client('dynamodb')
        self.table_name = table_name
        self.batch_executor = BatchExecutor(self.client)

    def _execute(self, request: dict, action: str) -> dict:
        try:
            return self.client.execute_statement(**request)
        except ClientError as e:
            logger.error(f"Couldn't {action}. Here's why: {error_reason(e)}")
            raise

    def add_movie(self, movie: Movie) -> None:
        '''
        Insert a movie with an INSERT statement.

        Args:
            movie: The movie to insert. The statement fails if the key is taken.
        '''
        self._execute(Insert(movie).to_statement(self.table_name), 'insert an item with PartiQL')

    def get_movie(self, title: str, year: int) -> Optional[Movie]:
        '''
        Get a movie with a SELECT statement.

        Args:
            title: The title of the movie.
            year: The release year of the movie.

        Returns:
            The movie if found, None otherwise.
        '''
        response = self._execute(
            PointRead(title, year).to_statement(self.table_name), f'get info about {title}'
        )
        items = response.get('Items', [])
        return Movie.from_item(items[0]) if items else None

    def get_all_movies(self) -> list[dict]:
        '''
        Get the title and rating of every movie in the table.

        Returns:
            A list of dicts with 'title' and, for rated movies, 'rating'.
        '''
        request: dict = {'Statement': f'SELECT title, info.rating FROM "{self.table_name}"'}
        movies = []
        while True:
            response = self._execute(request, 'get movies')
            movies.extend(
                {name: unmarshal_value(value) for name, value in item.items()}
                for item in response.get('Items', [])
            )
            if not response.get('NextToken'):
                return movies
            request['NextToken'] = response['NextToken']

    def update_movie(self, movie: Movie, rating: float) -> None:
        '''
        Set the rating of a movie with an UPDATE statement.

        Args:
            movie: The movie to update. Only its key is used.
            rating: The new rating.
        '''
        self._execute(
            Update(movie.title, movie.year, {'info.rating': rating}).to_statement(self.table_name),
            f'update movie {movie.title}',
        )

    def delete_movie(self, movie: Movie) -> None:
        '''
        Delete a movie with a DELETE statement.

        Args:
            movie: The movie to delete. Only its key is used.
        '''
        self._execute(
            Delete.for_movie(movie).to_statement(self.table_name),
            f'delete {movie.title} from the table',
        )

    def add_movie_batch(self, movies: list[Movie]) -> int:
        '''
        Insert movies with batches of INSERT statements.

        Returns:
            The number of statements sent.

        Raises:
            BatchExecutionError: If a batch call fails.
        '''
        return self.batch_executor.execute(self.table_name, [Insert(movie) for movie in movies]).count

    def get_movie_batch(self, movies: list[Movie]) -> list[Movie]:
        '''
        Get movies with batches of SELECT statements.

        Movies that are not in the table are left out of the result, which
        follows the order the service returns them in.

        Args:
            movies: The movies to get. Only their keys are used.

        Returns:
            The movies found.
        '''
        operations = [PointRead.for_movie(movie) for movie in movies]
        return self.batch_executor.execute(self.table_name, operations).items

    def update_movie_batch(self, movies: list[Movie], ratings: list[float]) -> int:
        '''
        Set the ratings of movies with batches of UPDATE statements.

        Args:
            movies: The movies to update. Only their keys are used.
            ratings: The new rating of each movie, in the same order.

        Returns:
            The number of statements sent.

        Raises:
            ValueError: If movies and ratings differ in length.
            BatchExecutionError: If a batch call fails.
        '''
        if len(movies) != len(ratings):
            raise ValueError(f'Got {len(movies)} movies but {len(ratings)} ratings')

        operations = [
            Update(movie.title, movie.year, {'info.rating': rating})
            for movie, rating in zip(movies, ratings)
        ]
        return self.batch_executor.execute(self.table_name, operations).count

    def delete_movie_batch(self, movies: list[Movie]) -> int:
        '''
        Delete movies with batches of DELETE statements.

        Returns:
            The number of statements sent.

        Raises:
            BatchExecutionError: If a batch call fails.
        '''
        operations = [Delete.for_movie(movie) for movie in movies]
        return self.batch_executor.execute(self.table_name, operations).count
