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
Movie scenario handler module for AWS Lambda.

This module provides the Lambda handler function running a movie table
scenario picked by the 'scenario' field of the event. Sample movies for the
movie table scenario can be passed in the 'movies' field.
'''

from __future__ import annotations

import logging
from typing import Any

import boto3

from movies import Movie

from .scenario_runner import ScenarioRunner, build_scenarios


logger = logging.getLogger()
logger.setLevel(level=logging.INFO)

dynamodb_client = boto3.client('dynamodb')


def run(event_: dict, _: Any) -> None:
    '''
    Lambda handler function for running a scenario.

    Args:
        event_: The Lambda event dictionary, e.g.
            {'scenario': 'movieTable', 'movies': [{'title': ..., 'year': ..., 'info': {...}}]}.
        _: The Lambda context (unused).

    Raises:
        ScenarioRunner.UnknownScenario: If the event names no known scenario.
    '''
    logger.info(f'Running event: {event_}')

    movies = [Movie(**movie) for movie in event_.get('movies', [])]
    runner = ScenarioRunner(build_scenarios(movies))

    runner.run(event_.get('scenario', ''), dynamodb_client)
