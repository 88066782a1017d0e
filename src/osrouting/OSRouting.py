import logging
import sys
from ipaddress import IPv4Address

from netaddr import EUI, mac_eui48

from ryu.cfg import CONF
from ryu.app.wsgi import WSGIApplication
from ryu.base.app_manager import RyuApp
from ryu.controller import ofp_event
from ryu.controller.handler import MAIN_DISPATCHER
from ryu.controller.handler import set_ev_cls
from ryu.ofproto import ofproto_v1_3
import ryu.app.ofctl.api as ryu_api

from osrouting import engine
from osrouting import rest
from osrouting.helpers import custom_logging_callback, logger_module_name, \
    log_format, log_format_debug, log_datefmt

# MAC Word separator definition
mac_eui48.word_sep = ":"

_log = logging.getLogger(logger_module_name(__file__))


def _routing_configuration(cli_opts):
    configs = {}
    if 'osrouting_gatewayDpid' in cli_opts:
        configs['gateway_dpid'] = int(str(cli_opts['osrouting_gatewayDpid']), 0)
    if 'osrouting_gatewayIP' in cli_opts:
        configs['gateway_ip'] = IPv4Address(cli_opts['osrouting_gatewayIP'])
    if 'osrouting_gatewayMac' in cli_opts:
        configs['gateway_mac'] = EUI(cli_opts['osrouting_gatewayMac'])
    if 'osrouting_externalRouterMac' in cli_opts:
        configs['external_router_mac'] = EUI(cli_opts['osrouting_externalRouterMac'])
    if 'osrouting_uplinkPort' in cli_opts:
        configs['uplink_port'] = int(cli_opts['osrouting_uplinkPort'])
    if 'osrouting_tunnelPort' in cli_opts:
        configs['tunnel_port'] = int(cli_opts['osrouting_tunnelPort'])
    if 'osrouting_portMin' in cli_opts:
        configs['port_min'] = int(cli_opts['osrouting_portMin'])
    if 'osrouting_portMax' in cli_opts:
        configs['port_max'] = int(cli_opts['osrouting_portMax'])
    if 'osrouting_pnatIdleTimeout' in cli_opts:
        configs['pnat_idle_timeout'] = int(cli_opts['osrouting_pnatIdleTimeout'])
    if 'osrouting_networkingData' in cli_opts:
        configs['networking_data'] = cli_opts['osrouting_networkingData']
    return engine.RoutingConfig(**configs)


class OSRouting(RyuApp):
    OFP_VERSIONS = [ofproto_v1_3.OFP_VERSION]
    _CONTEXTS = {'wsgi': WSGIApplication}

    def __init__(self, *args, **kwargs):
        try:
            super(OSRouting, self).__init__(*args, **kwargs)

            # Openstack routing CLI options evaluation
            cli_opts = dict(tuple(((key, CONF[key]) for key in CONF if "osrouting" in key and CONF[key])))
            _log.info(str(cli_opts))
            log_level = cli_opts.get('osrouting_logLevel', 'DEBUG' if sys.flags.debug else 'INFO')

            # Override ryu default logging configuration
            for handler in logging.getLogger().handlers:
                handler.setFormatter(
                    logging.Formatter(
                        fmt=log_format_debug if log_level == 'DEBUG' else log_format,
                        datefmt=log_datefmt,
                        style='{'
                    )
                )
            logging.getLogger().setLevel(log_level)

            config = _routing_configuration(cli_opts)
            _log.info("Routing Configurations:\n{:s}".format(str(config)))

            def get_datapath(dpid):
                return ryu_api.get_datapath(self, dpid)

            self.networking_service = engine.InMemoryNetworkingService()
            if config.networking_data:
                self.networking_service.load_json(config.networking_data)

            self.routing_manager = engine.RoutingManager(
                config,
                self.networking_service,
                engine.OpenFlowRulePopulator(config, get_datapath)
            )
            self.routing_manager.start()

            kwargs['wsgi'].register(
                rest.RoutingRestController,
                {
                    rest.ROUTING_INSTANCE_NAME: self.routing_manager,
                    rest.NETWORKING_INSTANCE_NAME: self.networking_service,
                }
            )

        except Exception as ex:
            custom_logging_callback(_log, logging.ERROR, *sys.exc_info())
            sys.exit(str(ex))

    def close(self):
        self.routing_manager.stop()

    @set_ev_cls(ofp_event.EventOFPPacketIn, MAIN_DISPATCHER)
    def packet_in_event(self, ev):
        try:
            _log.debug("packet_in_event: {:s}".format(str(ev)))
            self.routing_manager.process_packet(engine.PacketContext.from_packet_in(ev.msg))
        except Exception:
            custom_logging_callback(_log, logging.ERROR, *sys.exc_info())

    @set_ev_cls(ofp_event.EventOFPFlowRemoved, MAIN_DISPATCHER)
    def flow_removed_event(self, ev):
        msg = ev.msg
        ofp = msg.datapath.ofproto
        try:
            if msg.reason == ofp.OFPRR_IDLE_TIMEOUT:
                _log.info("Flow with Cookie ID {:d} has Timed Out".format(msg.cookie))
                self.routing_manager.process_flow_removed(msg.cookie)
            else:
                _log.debug("Unsupported flow removed reason value: {:d}".format(msg.reason))
        except Exception:
            custom_logging_callback(_log, logging.ERROR, *sys.exc_info())
