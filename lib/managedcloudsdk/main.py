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

"""Command line front end for the managed Cloud SDK."""

import argparse
import sys

from managedcloudsdk import components
from managedcloudsdk import managed_cloud_sdk
from managedcloudsdk import progress
from managedcloudsdk import version as version_lib
from managedcloudsdk.core import exceptions
from managedcloudsdk.core import log
from managedcloudsdk.core import properties
from managedcloudsdk.core.console import progress_bar


def _StatusMessageListener(message):
  log.status.write(message)


def _NewProgressListener():
  return progress.NewRootListener(progress_bar.ConsoleProgressSink())


def _Wait(future):
  """Waits for an operation, cancelling it on Ctrl-C.

  Further Ctrl-C presses while the operation winds down are ignored.

  Args:
    future: async_command.OperationFuture, The running operation.

  Returns:
    The result of the operation.
  """
  cancelled = False
  while True:
    try:
      return future.result()
    except KeyboardInterrupt:
      if not cancelled:
        log.status.write('Interrupting...\n')
        future.cancel()
        cancelled = True


def _Install(sdk, args):
  if sdk.IsInstalled():
    log.status.write('Cloud SDK {0} is already installed in [{1}]\n'.format(
        sdk.version, sdk.GetSdkHome()))
  else:
    _Wait(sdk.NewInstaller().InstallAsync(_NewProgressListener(),
                                          _StatusMessageListener))
  for component_id in args.component or []:
    _InstallComponent(sdk, components.SdkComponent.FromId(component_id))


def _InstallComponent(sdk, component):
  if sdk.HasComponent(component):
    log.status.write('Component [{0}] is already installed\n'.format(
        component))
    return
  installer = sdk.NewComponentInstaller()
  _Wait(installer.InstallComponentAsync(component, _NewProgressListener(),
                                        _StatusMessageListener))


def _RunInstallComponent(sdk, args):
  if not sdk.IsInstalled():
    raise exceptions.Error(
        'Cloud SDK {0} is not installed, run install first'.format(
            sdk.version))
  _InstallComponent(sdk, components.SdkComponent.FromId(args.component))


def _RunUpdate(sdk, unused_args):
  if not sdk.IsInstalled():
    raise exceptions.Error(
        'Cloud SDK {0} is not installed, run install first'.format(
            sdk.version))
  updater = sdk.NewUpdater()
  if updater is None:
    log.status.write('Cloud SDK {0} is pinned and is not updated\n'.format(
        sdk.version))
    return
  if sdk.IsUpToDate():
    log.status.write('Cloud SDK is up to date\n')
    return
  _Wait(updater.UpdateAsync(_NewProgressListener(), _StatusMessageListener))


def _RunStatus(sdk, unused_args):
  installed = sdk.IsInstalled()
  log.Print('version: {0}'.format(sdk.version))
  log.Print('sdk_home: {0}'.format(sdk.GetSdkHome()))
  log.Print('installed: {0}'.format(str(installed).lower()))
  if installed:
    log.Print('up_to_date: {0}'.format(str(sdk.IsUpToDate()).lower()))


def _GetParser():
  """Builds the argument parser with one sub-parser per operation."""
  parser = argparse.ArgumentParser(
      prog='managed-cloud-sdk',
      description='Installs and updates a Cloud SDK in a managed directory.')
  parser.add_argument('--verbosity',
                      choices=log.OrderedVerbosityNames(),
                      help='Override the default verbosity for this command.')
  parser.add_argument('--root',
                      help='The managed directory holding each Cloud SDK '
                      'version.')
  parser.add_argument('--version',
                      help='A Cloud SDK version such as 169.0.0, or LATEST.')
  parser.add_argument('--log-dir',
                      help='Also write a debug log file under this directory.')

  subparsers = parser.add_subparsers(dest='command')
  subparsers.required = True

  install = subparsers.add_parser(
      'install', help='Download and install the Cloud SDK.')
  install.add_argument('--component', action='append',
                       help='A component to install once the Cloud SDK is '
                       'installed. May be repeated.')
  install.set_defaults(func=_Install)

  install_component = subparsers.add_parser(
      'install-component', help='Install a Cloud SDK component.')
  install_component.add_argument(
      'component', help='The component id, for example app-engine-java.')
  install_component.set_defaults(func=_RunInstallComponent)

  update = subparsers.add_parser(
      'update', help='Update a LATEST Cloud SDK to the newest release.')
  update.set_defaults(func=_RunUpdate)

  status = subparsers.add_parser(
      'status', help='Show whether the Cloud SDK is installed and current.')
  status.set_defaults(func=_RunStatus)
  return parser


def _ConfigureLogging(args):
  if args.verbosity:
    properties.VALUES.core.verbosity.Set(args.verbosity)
  log.SetVerbosity(None)
  log.AddFileLogging(args.log_dir or properties.VALUES.core.log_dir.Get())


def main(argv=None):
  """Runs the command line and returns the process exit code."""
  if argv is None:
    argv = sys.argv

  args = _GetParser().parse_args(argv[1:])
  _ConfigureLogging(args)

  try:
    version = None
    if args.version:
      version = version_lib.Version.FromString(args.version)
    sdk = managed_cloud_sdk.NewManagedSdk(version=version,
                                          managed_sdk_directory=args.root)
    args.func(sdk, args)
  except exceptions.Error as e:
    log.debug('Command failed', exc_info=True)
    log.error(exceptions.ExceptionContext(e))
    return e.exit_code
  return 0


if __name__ == '__main__':
  sys.exit(main())
