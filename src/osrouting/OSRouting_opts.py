from ryu import cfg

CONF = cfg.CONF
CONF.register_cli_opts([
    cfg.StrOpt('osrouting_gatewayDpid', default="1", help='Gateway switch datapath id'),
    cfg.StrOpt('osrouting_gatewayIP', default=None, help='Gateway IPv4 address answered to ICMP echo requests'),
    cfg.StrOpt('osrouting_gatewayMac', default="fe:00:00:00:00:01", help='Gateway MAC address'),
    cfg.StrOpt('osrouting_externalRouterMac', default="fe:00:00:00:00:02", help='External router MAC address'),
    cfg.IntOpt('osrouting_uplinkPort', default=1, help='Gateway switch port towards the external network'),
    cfg.IntOpt('osrouting_tunnelPort', default=2, help='Gateway switch port towards the compute nodes'),
    cfg.IntOpt('osrouting_portMin', default=1024, help='First NAT port'),
    cfg.IntOpt('osrouting_portMax', default=65535, help='NAT ports upper limit (excluded)'),
    cfg.IntOpt('osrouting_pnatIdleTimeout', default=60, help='PNAT flows idle timeout (seconds)'),
    cfg.StrOpt('osrouting_networkingData', default=None, help='Openstack networking data (JSON file)'),
    cfg.StrOpt('osrouting_logLevel', default="INFO", help='Openstack routing logger level'),
])
