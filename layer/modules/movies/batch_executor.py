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
Batch executor module for chunked DynamoDB batch calls.

DynamoDB accepts at most 25 items per BatchWriteItem or BatchExecuteStatement
call. The executor turns a sequence of operations of any length into the
minimum number of compliant calls, sent one after another, and merges what
they return into a single BatchOutcome.
'''

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from .config import CONFIG, MAX_BATCH_SIZE
from .exceptions import BatchExecutionError, MarshalError, error_reason
from .movie import Movie
from .operation import Operation, StatementBatch, WriteBatch

logger = logging.getLogger()

T = TypeVar('T')


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    '''
    Split a sequence into contiguous chunks.

    Args:
        items: The sequence to split.
        size: The maximum length of a chunk.

    Yields:
        Slices of items, in order, each at most size long. The last one may be shorter.

    Raises:
        ValueError: If size is not positive.
    '''
    if size < 1:
        raise ValueError(f'Chunk size must be positive: {size}')

    for start in range(0, len(items), size):
        yield items[start:start + size]


@dataclass
class BatchOutcome:
    '''
    Aggregate result of a batch run.

    Attributes:
        count: Number of operations submitted in successful calls.
        items: Movies decoded from the responses of read statements, in service order.
        errors: Errors of the calls that failed.
        unprocessed: Write requests or statement errors the service reported as not applied.
    '''

    count: int = 0
    items: list[Movie] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    unprocessed: list[dict] = field(default_factory=list)

    @property
    def error(self) -> Optional[Exception]:
        '''The first error encountered, if any.'''
        return self.errors[0] if self.errors else None


class BatchExecutor:
    '''
    Sends homogeneous operation sequences to DynamoDB in chunks.

    The executor is stateless between runs: every call to write or execute
    builds its own outcome. It does not retry, back off or time out on its own;
    that is left to the botocore client configuration.

    Attributes:
        client: A low level boto3 DynamoDB client.
        batch_size: Number of operations per call, at most MAX_BATCH_SIZE.
        stop_on_error: Whether a failed call ends the run (default) or the
            remaining chunks are still sent.
    '''

    def __init__(
        self,
        client: Any,
        batch_size: Optional[int] = None,
        stop_on_error: bool = True,
    ) -> None:
        batch_size = CONFIG['batch_size'] if batch_size is None else batch_size
        if not 0 < batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f'Batch size must be between 1 and {MAX_BATCH_SIZE}: {batch_size}')

        self.client = client
        self.batch_size = batch_size
        self.stop_on_error = stop_on_error

    @staticmethod
    def _limit(operations: Sequence[T], max_records: Optional[int]) -> Sequence[T]:
        if max_records is None:
            return operations
        if max_records < 0:
            raise ValueError(f'max_records must not be negative: {max_records}')
        return operations[:max_records]

    @staticmethod
    def _render(chunk: Sequence[Operation], render: Callable[[Any], dict]) -> list[dict]:
        requests = []
        for operation in chunk:
            try:
                requests.append(render(operation))
            except MarshalError as e:
                logger.error(f"Couldn't marshal {operation} for a batch. Here's why: {e}")
        return requests

    def _chunk_failed(self, outcome: BatchOutcome, error: Exception, description: str) -> None:
        logger.error(f"Couldn't {description}. Here's why: {error_reason(error)}")
        outcome.errors.append(error)
        if self.stop_on_error:
            raise BatchExecutionError(f'Batch stopped after {outcome.count} operations', outcome) from error

    @staticmethod
    def _raise_for_errors(outcome: BatchOutcome) -> None:
        if outcome.errors:
            raise BatchExecutionError(
                f'{len(outcome.errors)} batch calls failed', outcome
            ) from outcome.errors[0]

    def write(
        self,
        table_name: str,
        operations: WriteBatch,
        max_records: Optional[int] = None,
    ) -> BatchOutcome:
        '''
        Apply puts or deletes with BatchWriteItem.

        Args:
            table_name: The table to write to.
            operations: Insert or Delete operations, all of the same kind.
            max_records: Only the first max_records operations are applied when set.

        Returns:
            The outcome of the run. Unprocessed write requests are reported, not resubmitted.

        Raises:
            BatchExecutionError: If a call fails. The error carries the partial outcome.
        '''
        outcome = BatchOutcome()
        for chunk in chunked(self._limit(operations, max_records), self.batch_size):
            requests = self._render(chunk, lambda operation: operation.to_write_request())
            if not requests:
                continue

            try:
                response = self.client.batch_write_item(RequestItems={table_name: requests})
            except (ClientError, BotoCoreError) as e:
                self._chunk_failed(outcome, e, f'write a batch of {len(requests)} items to {table_name}')
                continue

            outcome.count += len(requests)
            unprocessed = response.get('UnprocessedItems', {}).get(table_name, [])
            if unprocessed:
                logger.warning(f'{len(unprocessed)} write requests to {table_name} were not processed')
                outcome.unprocessed.extend(unprocessed)

        self._raise_for_errors(outcome)
        return outcome

    def execute(
        self,
        table_name: str,
        operations: StatementBatch,
        max_records: Optional[int] = None,
    ) -> BatchOutcome:
        '''
        Run PartiQL statements with BatchExecuteStatement.

        Items returned by read statements are decoded into movies in the order
        the service returns them. Items that fail to decode, keys with no item
        and statements answered with an error are left out without failing the run.

        Args:
            table_name: The table the statements run against.
            operations: Insert, PointRead, Update or Delete operations, all of the same kind.
            max_records: Only the first max_records operations are run when set.

        Returns:
            The outcome of the run.

        Raises:
            BatchExecutionError: If a call fails. The error carries the partial outcome.
        '''
        outcome = BatchOutcome()
        for chunk in chunked(self._limit(operations, max_records), self.batch_size):
            statements = self._render(chunk, lambda operation: operation.to_statement(table_name))
            if not statements:
                continue

            try:
                response = self.client.batch_execute_statement(Statements=statements)
            except (ClientError, BotoCoreError) as e:
                self._chunk_failed(outcome, e, f'run a batch of {len(statements)} statements on {table_name}')
                continue

            outcome.count += len(statements)
            for statement_response in response.get('Responses', []):
                if 'Error' in statement_response:
                    logger.warning(
                        f"Statement on {table_name} failed: {statement_response['Error'].get('Code')}: "
                        f"{statement_response['Error'].get('Message')}"
                    )
                    outcome.unprocessed.append(statement_response)
                elif 'Item' in statement_response:
                    self._decode(statement_response['Item'], outcome)

        self._raise_for_errors(outcome)
        return outcome

    @staticmethod
    def _decode(item: dict, outcome: BatchOutcome) -> None:
        try:
            outcome.items.append(Movie.from_item(item))
        except MarshalError as e:
            logger.error(f"Couldn't unmarshal response. Here's why: {e}")
