import logging

from scapy.layers.l2 import Ether

from osrouting.helpers import logger_module_name

_log = logging.getLogger(logger_module_name(__file__))


class PacketContext(object):
    """
        A packet received by the controller, shared by every processor of the packet-in pipeline.
        The first processor taking ownership of the packet blocks the context, so the others leave it alone.
    """

    def __init__(self, data, datapath=None, in_port=None):
        assert isinstance(data, (bytes, bytearray)), "data is not bytes. Got {:s}".format(repr(type(data)))

        self.__data = bytes(data)
        self.__datapath = datapath
        self.__in_port = in_port
        self.__parsed = None
        self.__handled = False

    @classmethod
    def from_packet_in(cls, msg):
        datapath_ofp_parser = msg.datapath.ofproto_parser
        in_port = None
        if msg.match:
            for match_field in msg.match.fields:
                if type(match_field) is datapath_ofp_parser.MTInPort:
                    in_port = match_field.value
        return cls(msg.data, datapath=msg.datapath, in_port=in_port)

    @property
    def data(self):
        return self.__data

    @property
    def datapath(self):
        return self.__datapath

    @property
    def datapath_id(self):
        return self.__datapath.id if self.__datapath is not None else None

    @property
    def in_port(self):
        return self.__in_port

    @property
    def parsed(self):
        if self.__parsed is None:
            self.__parsed = Ether(self.__data)
        return self.__parsed

    @property
    def is_handled(self):
        return self.__handled

    def block(self):
        if self.__handled:
            return False
        self.__handled = True
        return True

    def send(self, packet):
        '''
            Sends packet back through the port where the original packet came in.
        '''
        datapath = self.__datapath
        datapath_ofp_parser = datapath.ofproto_parser
        datapath_ofp = datapath.ofproto
        data = bytes(packet)

        datapath.send_msg(
            datapath_ofp_parser.OFPPacketOut(
                datapath=datapath,
                buffer_id=datapath_ofp.OFP_NO_BUFFER,
                in_port=datapath_ofp.OFPP_CONTROLLER,
                actions=[datapath_ofp_parser.OFPActionOutput(port=self.__in_port, max_len=len(data))],
                data=data
            )
        )

    def reinject(self):
        '''
            Resubmits the original packet to the datapath flow tables.
        '''
        datapath = self.__datapath
        datapath_ofp_parser = datapath.ofproto_parser
        datapath_ofp = datapath.ofproto

        datapath.send_msg(
            datapath_ofp_parser.OFPPacketOut(
                datapath=datapath,
                buffer_id=datapath_ofp.OFP_NO_BUFFER,
                in_port=self.__in_port,
                actions=[datapath_ofp_parser.OFPActionOutput(port=datapath_ofp.OFPP_TABLE, max_len=len(self.__data))],
                data=self.__data
            )
        )

    def __str__(self):
        return "<PacketContext datapath={:s} in_port={:s} handled={:s}>".format(
            str(self.datapath_id), str(self.__in_port), str(self.__handled)
        )
