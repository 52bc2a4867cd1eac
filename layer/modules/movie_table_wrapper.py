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
Movie table wrapper module for DynamoDB table and item operations.

This module provides a simplified interface for the movie table: table
lifecycle (exists, create, list, delete), single item put/get/update/delete,
key queries, filtered scans and batch puts. It wraps the low level boto3
DynamoDB client and converts movies to and from the attribute value format.
'''

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import boto3
from boto3.dynamodb.conditions import Attr, ConditionExpressionBuilder, Key
from botocore.exceptions import ClientError, WaiterError

from movies import BatchExecutor, Insert, MarshalError, Movie
from movies.config import CONFIG
from movies.exceptions import error_reason
from movies.movie import marshal_value, unmarshal_value

logger = logging.getLogger()


class MovieTableWrapper:
    '''
    A wrapper class for movie table operations.

    The table uses the release year as partition key and the title as sort
    key. Every service error is logged with its reason and re-raised.

    Attributes:
        client: The boto3 DynamoDB client instance.
        table_name: The name of the movie table.
        batch_executor: Executor used to put movies in batches of at most 25.
    '''

    def __init__(self, table_name: str, client: Optional[Any] = None) -> None:
        '''
        Initialize the wrapper for a specific table.

        Args:
            table_name: The name of the DynamoDB table to interact with.
            client: A boto3 DynamoDB client. A new one is created when omitted.
        '''
        self.client = client or boto3.client('dynamodb')
        self.table_name = table_name
        self.batch_executor = BatchExecutor(self.client)

    def _waiter_config(self) -> dict:
        return {
            'Delay': CONFIG['table_wait_delay'],
            'MaxAttempts': CONFIG['table_wait_max_attempts'],
        }

    def exists(self) -> bool:
        '''
        Determine whether the table exists.

        Returns:
            True when the table exists, False otherwise.

        Raises:
            ClientError: If the existence of the table cannot be determined.
        '''
        try:
            self.client.describe_table(TableName=self.table_name)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                logger.info(f'Table {self.table_name} does not exist.')
                return False
            logger.error(
                f"Couldn't determine existence of table {self.table_name}. "
                f"Here's why: {error_reason(e)}"
            )
            raise
        return True

    def create_table(self) -> dict:
        '''
        Create the movie table and wait until it is active.

        The year is the partition key and the title the sort key.

        Returns:
            The description of the new table.

        Raises:
            ClientError: If the table cannot be created.
            WaiterError: If the table does not become active in time.
        '''
        try:
            response = self.client.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {'AttributeName': 'year', 'KeyType': 'HASH'},
                    {'AttributeName': 'title', 'KeyType': 'RANGE'},
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'year', 'AttributeType': 'N'},
                    {'AttributeName': 'title', 'AttributeType': 'S'},
                ],
                ProvisionedThroughput={'ReadCapacityUnits': 10, 'WriteCapacityUnits': 10},
            )
        except ClientError as e:
            logger.error(f"Couldn't create table {self.table_name}. Here's why: {error_reason(e)}")
            raise

        try:
            self.client.get_waiter('table_exists').wait(
                TableName=self.table_name, WaiterConfig=self._waiter_config()
            )
        except WaiterError as e:
            logger.error(f"Wait for table exists failed. Here's why: {e}")
            raise

        return response['TableDescription']

    def list_tables(self) -> list[str]:
        '''
        List the tables of the account in the current region.

        Returns:
            The table names.
        '''
        table_names: list[str] = []
        try:
            for page in self.client.get_paginator('list_tables').paginate():
                table_names.extend(page.get('TableNames', []))
        except ClientError as e:
            logger.error(f"Couldn't list tables. Here's why: {error_reason(e)}")
            raise
        return table_names

    def add_movie(self, movie: Movie) -> None:
        '''
        Put a movie into the table, replacing any movie with the same key.

        Args:
            movie: The movie to store.

        Raises:
            MarshalError: If the movie cannot be marshaled.
        '''
        item = movie.to_item()
        try:
            self.client.put_item(TableName=self.table_name, Item=item)
        except ClientError as e:
            logger.error(f"Couldn't add movie {movie.title} to table. Here's why: {error_reason(e)}")
            raise

    def update_movie(self, movie: Movie) -> dict:
        '''
        Update the rating and plot of a movie already in the table.

        Args:
            movie: The movie key and its new info.rating and info.plot values.

        Returns:
            The updated attributes, e.g. {'info': {'rating': 7.5, 'plot': '...'}}.
        '''
        try:
            response = self.client.update_item(
                TableName=self.table_name,
                Key=movie.get_key(),
                UpdateExpression='SET #info.#rating = :rating, #info.#plot = :plot',
                ExpressionAttributeNames={'#info': 'info', '#rating': 'rating', '#plot': 'plot'},
                ExpressionAttributeValues={
                    ':rating': marshal_value(movie.info.get('rating')),
                    ':plot': marshal_value(movie.info.get('plot')),
                },
                ReturnValues='UPDATED_NEW',
            )
        except ClientError as e:
            logger.error(f"Couldn't update movie {movie.title}. Here's why: {error_reason(e)}")
            raise

        return {name: unmarshal_value(value) for name, value in response.get('Attributes', {}).items()}

    def add_movie_batch(self, movies: list[Movie], max_movies: Optional[int] = None) -> int:
        '''
        Put movies into the table in batches of at most 25.

        Args:
            movies: The movies to store.
            max_movies: Only the first max_movies movies are stored when set.

        Returns:
            The number of movies written.

        Raises:
            BatchExecutionError: If a batch call fails. Movies of earlier
                batches stay written and are counted in the error outcome.
        '''
        outcome = self.batch_executor.write(
            self.table_name, [Insert(movie) for movie in movies], max_movies
        )
        logger.info(f'Added {outcome.count} movies to {self.table_name}')
        return outcome.count

    def get_movie(self, title: str, year: int) -> Optional[Movie]:
        '''
        Retrieve a movie from the table.

        Args:
            title: The title of the movie.
            year: The release year of the movie.

        Returns:
            The movie if found, None if the movie doesn't exist.
        '''
        try:
            response = self.client.get_item(
                TableName=self.table_name, Key=Movie(title, year).get_key()
            )
        except ClientError as e:
            logger.error(f"Couldn't get info about {title}. Here's why: {error_reason(e)}")
            raise

        item = response.get('Item')
        return Movie.from_item(item) if item else None

    def _collect(self, operation: Callable[..., dict], **kwargs: Any) -> list[Movie]:
        movies = []
        response = operation(**kwargs)
        items = response.get('Items', [])

        last_evaluated_key: dict | None = response.get('LastEvaluatedKey')
        while last_evaluated_key:
            response = operation(ExclusiveStartKey=last_evaluated_key, **kwargs)
            items.extend(response.get('Items', []))
            last_evaluated_key = response.get('LastEvaluatedKey')

        for item in items:
            try:
                movies.append(Movie.from_item(item))
            except MarshalError as e:
                logger.error(f"Couldn't unmarshal response. Here's why: {e}")
        return movies

    @staticmethod
    def _expression_values(values: dict) -> dict:
        return {placeholder: marshal_value(value) for placeholder, value in values.items()}

    def query(self, release_year: int) -> list[Movie]:
        '''
        Query for the movies released in a given year.

        Args:
            release_year: The year to query.

        Returns:
            The movies released in that year.
        '''
        expression = ConditionExpressionBuilder().build_expression(
            Key('year').eq(release_year), is_key_condition=True
        )
        try:
            return self._collect(
                self.client.query,
                TableName=self.table_name,
                KeyConditionExpression=expression.condition_expression,
                ExpressionAttributeNames=expression.attribute_name_placeholders,
                ExpressionAttributeValues=self._expression_values(
                    expression.attribute_value_placeholders
                ),
            )
        except ClientError as e:
            logger.error(
                f"Couldn't query for movies released in {release_year}. "
                f"Here's why: {error_reason(e)}"
            )
            raise

    def scan(self, start_year: int, end_year: int) -> list[Movie]:
        '''
        Scan for the movies released in a range of years.

        Only the year, title and info.rating attributes are returned.

        Args:
            start_year: The first year of the range.
            end_year: The last year of the range, inclusive.

        Returns:
            The movies released in the range.
        '''
        expression = ConditionExpressionBuilder().build_expression(
            Attr('year').between(start_year, end_year)
        )
        attribute_names = {
            **expression.attribute_name_placeholders,
            '#p_year': 'year',
            '#p_title': 'title',
            '#p_info': 'info',
            '#p_rating': 'rating',
        }
        try:
            return self._collect(
                self.client.scan,
                TableName=self.table_name,
                FilterExpression=expression.condition_expression,
                ProjectionExpression='#p_year, #p_title, #p_info.#p_rating',
                ExpressionAttributeNames=attribute_names,
                ExpressionAttributeValues=self._expression_values(
                    expression.attribute_value_placeholders
                ),
            )
        except ClientError as e:
            logger.error(
                f"Couldn't scan for movies released between {start_year} and {end_year}. "
                f"Here's why: {error_reason(e)}"
            )
            raise

    def delete_movie(self, movie: Movie) -> None:
        '''
        Delete a movie from the table.

        Args:
            movie: The movie to delete. Only its key is used.
        '''
        try:
            self.client.delete_item(TableName=self.table_name, Key=movie.get_key())
        except ClientError as e:
            logger.error(f"Couldn't delete {movie.title} from the table. Here's why: {error_reason(e)}")
            raise

    def delete_table(self) -> None:
        '''
        Delete the table and wait until it is gone.
        '''
        try:
            self.client.delete_table(TableName=self.table_name)
            self.client.get_waiter('table_not_exists').wait(
                TableName=self.table_name, WaiterConfig=self._waiter_config()
            )
        except ClientError as e:
            logger.error(f"Couldn't delete table {self.table_name}. Here's why: {error_reason(e)}")
            raise
        except WaiterError as e:
            logger.error(f"Wait for table deletion failed. Here's why: {e}")
            raise
