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
Configuration module for batch and table settings.

This module loads configuration from either a JSON file or environment variables,
providing fallback behavior for different deployment environments. The configuration
includes the per-call batch size, the table names used by each scenario and the
table waiter settings.

Configuration Keys:
    batch_size: Number of items sent per batch call (at most MAX_BATCH_SIZE)
    movie_table_name: Table used by the movie table scenario
    partiql_single_table_name: Table used by the single statement PartiQL scenario
    partiql_batch_table_name: Table used by the batch PartiQL scenario
    table_wait_delay: Seconds between table waiter polls
    table_wait_max_attempts: Number of table waiter polls before giving up

Loading Strategy:
    1. Attempts to load from config.json in the same directory
    2. Falls back to environment variables if JSON file fails
    3. Logs error if JSON loading fails but continues with env vars

Environment Variables (fallback):
    BATCH_SIZE: Items per batch call (default 25)
    MOVIE_TABLE_NAME: Movie table scenario table name
    PARTIQL_SINGLE_TABLE_NAME: Single PartiQL scenario table name
    PARTIQL_BATCH_TABLE_NAME: Batch PartiQL scenario table name
    TABLE_WAIT_DELAY: Table waiter delay in seconds (default 20)
    TABLE_WAIT_MAX_ATTEMPTS: Table waiter attempts (default 15)

Usage:
    >>> from movies.config import CONFIG
    >>> CONFIG['batch_size']
    25

Attributes:
    MAX_BATCH_SIZE: Maximum number of items DynamoDB accepts in one batch call
    CONFIG_FILE: Path to the config.json file
    CONFIG: Dictionary containing all configuration values
'''

from pathlib import Path
import json
import logging
import os

# DynamoDB allows a maximum batch size of 25 items.
MAX_BATCH_SIZE = 25

# Path to configuration file in the same directory as this module
CONFIG_FILE = Path(Path(__file__).parent, 'config.json')
logger = logging.getLogger()

try:
    # Attempt to load configuration from JSON file
    with CONFIG_FILE.open(encoding='utf-8') as config_file:
        CONFIG = json.load(config_file)
except Exception as e:  # pylint: disable=broad-except
    # Fallback to environment variables if JSON file is missing or invalid
    logger.info(f'Config file not loaded: {CONFIG_FILE}: {e}')
    CONFIG = {
        'batch_size': min(int(os.getenv('BATCH_SIZE', str(MAX_BATCH_SIZE))), MAX_BATCH_SIZE),
        'movie_table_name': os.getenv('MOVIE_TABLE_NAME', 'doc-example-movie-table'),
        'partiql_single_table_name': os.getenv(
            'PARTIQL_SINGLE_TABLE_NAME', 'doc-example-partiql-single-table'
        ),
        'partiql_batch_table_name': os.getenv(
            'PARTIQL_BATCH_TABLE_NAME', 'doc-example-partiql-batch-table'
        ),
        'table_wait_delay': int(os.getenv('TABLE_WAIT_DELAY', '20')),
        'table_wait_max_attempts': int(os.getenv('TABLE_WAIT_MAX_ATTEMPTS', '15')),
    }
