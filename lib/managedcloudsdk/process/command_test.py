# Copyright 2017 Google LLC. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for managedcloudsdk.process.command."""

import io

from managedcloudsdk.process import command
from managedcloudsdk.tests.lib import test_case


class FakeExecutor(object):
  """Feeds canned output to the stream handlers instead of starting a child."""

  def __init__(self, exit_code=0, stdout=b'', stderr=b''):
    self.exit_code = exit_code
    self.stdout = stdout
    self.stderr = stderr
    self.calls = []

  def Run(self, args, stdout_handler, stderr_handler, working_directory=None,
          environment=None):
    self.calls.append((list(args), working_directory, environment))
    stdout_handler.Handle(io.BytesIO(self.stdout))
    stderr_handler.Handle(io.BytesIO(self.stderr))
    return self.exit_code


class CommandRunnerTest(test_case.Base):

  def testForwardsOutput(self):
    executor = FakeExecutor(stdout=b'a\nb\n', stderr=b'c\n')
    messages = []
    command.CommandRunner(executor).Run(
        ['gcloud', 'components', 'install', 'beta'],
        working_directory='/sdk', environment={'A': 'B'},
        message_listener=messages.append)
    self.assertEqual(
        [(['gcloud', 'components', 'install', 'beta'], '/sdk', {'A': 'B'})],
        executor.calls)
    self.assertEqual(['a\n', 'b\n', 'c\n'], sorted(messages))

  def testNonZeroExit(self):
    executor = FakeExecutor(exit_code=2)
    with self.assertRaises(command.CommandExitError) as context:
      command.CommandRunner(executor).Run(['gcloud', 'version'])
    self.assertEqual(2, context.exception.exit_code)
    self.assertEqual(['gcloud', 'version'], context.exception.command)
    self.assertIn('[gcloud version]', str(context.exception))


class CommandCallerTest(test_case.Base):

  def testCall(self):
    executor = FakeExecutor(stdout=b'[]\n', stderr=b'warning\n')
    self.assertEqual('[]\n', command.CommandCaller(executor).Call(['gcloud']))

  def testExecuteKeepsExitCode(self):
    executor = FakeExecutor(exit_code=1, stdout=b'out\n', stderr=b'err\n')
    self.assertEqual(command.CommandResult(1, 'out\n', 'err\n'),
                     command.CommandCaller(executor).Execute(['gcloud']))

  def testCallFailureCarriesOutput(self):
    executor = FakeExecutor(exit_code=1, stdout=b'out\n', stderr=b'bad flag\n')
    with self.assertRaises(command.CommandExitError) as context:
      command.CommandCaller(executor).Call(['gcloud', '--bad'])
    self.assertEqual(1, context.exception.exit_code)
    self.assertEqual('out\n', context.exception.stdout)
    self.assertEqual('bad flag\n', context.exception.stderr)
    self.assertIn('bad flag', str(context.exception))
