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
Scenario runner module for dispatching scenarios by name.

The registry of scenarios is an immutable mapping built once and handed to
the runner, so nothing registers or replaces scenarios while the process runs.
'''

from __future__ import annotations

from functools import partial
import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from movies import Movie
from movies.config import CONFIG

from .scenarios import (
    run_movie_table_scenario,
    run_partiql_batch_scenario,
    run_partiql_single_scenario,
)

logger = logging.getLogger()

ScenarioHandler = Callable[[Any], None]


def build_scenarios(movies: Sequence[Movie] = ()) -> Mapping[str, ScenarioHandler]:
    '''
    Build the registry of the available scenarios.

    Args:
        movies: Sample movies for the movie table scenario.

    Returns:
        A read-only mapping from scenario name to a handler taking a DynamoDB client.
    '''
    return MappingProxyType({
        'movieTable': partial(
            run_movie_table_scenario,
            table_name=CONFIG['movie_table_name'],
            movies=tuple(movies),
        ),
        'partiQLSingle': partial(
            run_partiql_single_scenario,
            table_name=CONFIG['partiql_single_table_name'],
        ),
        'partiQLBatch': partial(
            run_partiql_batch_scenario,
            table_name=CONFIG['partiql_batch_table_name'],
        ),
    })


class ScenarioRunner:  # pylint: disable=too-few-public-methods
    '''
    Runs a scenario picked by name from a fixed registry.

    Attributes:
        scenarios: Read-only mapping from scenario name to handler.
    '''

    class UnknownScenario(Exception):
        '''
        Exception raised when the requested scenario is not in the registry.
        '''

    def __init__(self, scenarios: Mapping[str, ScenarioHandler]) -> None:
        self.scenarios = MappingProxyType(dict(scenarios))

    def run(self, name: str, client: Any) -> None:
        '''
        Run a scenario.

        Args:
            name: The name of the scenario.
            client: The boto3 DynamoDB client the scenario works with.

        Raises:
            UnknownScenario: If no scenario has that name.
        '''
        if name not in self.scenarios:
            raise self.UnknownScenario(
                f"'{name}' is not a valid scenario. Must be one of {sorted(self.scenarios)}."
            )

        logger.info(f'Running scenario {name}')
        self.scenarios[name](client)
