__all__ = ['start_controller', 'build_ryu_arguments']

import subprocess
import sys
import signal
import logging
import pathlib
from osrouting.arg_parsing import parse_arguments
from osrouting.helpers import custom_logging_callback, logger_module_name, log_format_debug, log_datefmt

__process = None
__log = None


def quit_callback(signum, frame):
    if __log:
        __log.warning("Shutting down controller...")
    if __process:
        __process.terminate()


def build_ryu_arguments(parsed_args):
    package_location = pathlib.Path(__file__).parent

    args = [
        'ryu-manager',
        '--verbose',
        '--default-log-level',
        str(logging.getLevelName(parsed_args.logLevel)),
        '--ofp-tcp-listen-port', '{:d}'.format(parsed_args.ofport),
        '--wsapi-port', '{:d}'.format(parsed_args.wsport),
        '--user-flags', str(package_location / "OSRouting_opts.py"),
        '--osrouting_gatewayDpid', '{:d}'.format(parsed_args.gateway_dpid),
        '--osrouting_gatewayMac', str(parsed_args.gateway_mac),
        '--osrouting_externalRouterMac', str(parsed_args.external_router_mac),
        '--osrouting_uplinkPort', '{:d}'.format(parsed_args.uplink_port),
        '--osrouting_tunnelPort', '{:d}'.format(parsed_args.tunnel_port),
        '--osrouting_portMin', '{:d}'.format(parsed_args.port_min),
        '--osrouting_portMax', '{:d}'.format(parsed_args.port_max),
        '--osrouting_pnatIdleTimeout', '{:d}'.format(parsed_args.pnat_idle_timeout),
        '--osrouting_logLevel', parsed_args.logLevel,
    ]
    if parsed_args.logLevel == 'DEBUG':
        args.append('--enable-debugger')

    if parsed_args.gateway_ip is not None:
        args.append('--osrouting_gatewayIP')
        args.append(str(parsed_args.gateway_ip))

    if parsed_args.networking_data is not None:
        args.append('--osrouting_networkingData')
        args.append(str(parsed_args.networking_data.absolute()))

    args.append(str(package_location / "OSRouting.py"))
    return args


def start_controller():
    global __process, __log
    try:
        signal.signal(signal.SIGINT, quit_callback)
        signal.signal(signal.SIGTERM, quit_callback)

        parsed_args = parse_arguments()

        logging.basicConfig(
            format=log_format_debug,
            datefmt=log_datefmt,
            style='{',
            level=logging.DEBUG if sys.flags.debug else parsed_args.logLevel
        )
        __log = logging.getLogger(logger_module_name(__file__))
        __log.info('{:s}'.format(str(parsed_args)))

        __process = subprocess.Popen(
            build_ryu_arguments(parsed_args),
            stdout=sys.stdout,
            stderr=sys.stderr
        )

        __process.wait()
    except Exception as ex:
        custom_logging_callback(__log if __log else logging.getLogger(), logging.ERROR, *sys.exc_info())
        sys.exit(str(ex))
