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
Custom exceptions for batch execution against DynamoDB.

This module defines exception types used to separate record level failures,
which a batch can survive, from call level failures, which end it.
'''

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .batch_executor import BatchOutcome


class MarshalError(Exception):
    '''
    Exception raised when a record cannot be converted to or from the
    DynamoDB attribute value format.

    This exception is used for records that are structurally invalid for the
    movie table. For example:
    - A movie without a title or a year
    - A year that is not an integer
    - An attribute value of a type DynamoDB cannot store (e.g. a set of mixed types)

    When this exception is raised inside a batch:
    - The offending record is logged and skipped
    - The remaining records of the chunk are still sent
    - The batch count does not include the skipped record

    Single item operations let it propagate to the caller.

    Example:
        >>> if 'title' not in item:
        ...     raise MarshalError('Item has no title attribute')
    '''


class BatchExecutionError(Exception):
    '''
    Exception raised when a batch call to DynamoDB fails.

    The error carries the outcome accumulated up to the point of failure, so
    callers can tell how many records were applied before the batch stopped:

    - outcome.count: number of operations submitted in successful calls
    - outcome.items: records decoded from successful read calls
    - outcome.errors: every chunk level error encountered

    The underlying botocore error is chained as __cause__ when a single call
    failed. When the executor runs with stop_on_error=False, the error is
    raised once after the last chunk and lists all chunk errors.

    Example:
        >>> try:
        ...     executor.write(table_name, operations)
        ... except BatchExecutionError as e:
        ...     logger.error(f'Wrote {e.outcome.count} items before failing')
    '''

    def __init__(self, message: str, outcome: BatchOutcome) -> None:
        super().__init__(message)
        self.outcome = outcome


def error_reason(error: Exception) -> str:
    '''
    Describe an AWS error for a log line.

    Args:
        error: A botocore ClientError, or any other exception.

    Returns:
        "<Code>: <Message>" for service errors, the error text otherwise.
    '''
    response = getattr(error, 'response', None)
    if isinstance(response, dict) and 'Error' in response:
        return f"{response['Error'].get('Code')}: {response['Error'].get('Message')}"
    return str(error)
