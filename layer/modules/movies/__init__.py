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
Movie catalog package for DynamoDB batch processing.

This package provides the Movie record, the operation descriptors a batch
carries, and the BatchExecutor that sends them to DynamoDB in calls of at
most 25 items.

Operation Hierarchy:
    Operation (ABC)
    ├── PointRead - SELECT one movie by key
    ├── Update - SET attributes of one movie
    └── WriteOperation
        ├── Insert - put one movie
        └── Delete - delete one movie by key

Usage:
    The executor is typically driven by the table wrappers, but can be used directly:

    >>> import boto3
    >>> from movies import BatchExecutor, Insert, Movie
    >>> executor = BatchExecutor(boto3.client('dynamodb'))
    >>>
    >>> # Put 30 movies in two calls (25 + 5)
    >>> outcome = executor.write('movies', [Insert(Movie(f'Movie {n}', 2001)) for n in range(30)])
    >>> outcome.count
    30

Architecture:
    - Batches are homogeneous: one descriptor kind per run
    - Records that fail to marshal are skipped, failed calls end the run
    - Unprocessed items are reported in the outcome, never resubmitted

See Also:
    - batch_executor.BatchExecutor: Chunking and call orchestration
    - movie.Movie: Record and attribute value conversion
'''

from .exceptions import BatchExecutionError, MarshalError
from .movie import Movie
from .operation import Delete, Insert, Operation, PointRead, Update, WriteOperation
from .batch_executor import BatchExecutor, BatchOutcome, chunked

__all__ = [
    'BatchExecutionError',
    'MarshalError',
    'Movie',
    'Operation',
    'WriteOperation',
    'Insert',
    'PointRead',
    'Update',
    'Delete',
    'BatchExecutor',
    'BatchOutcome',
    'chunked',
]
