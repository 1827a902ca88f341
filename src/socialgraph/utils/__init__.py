from socialgraph.utils.encoding import encode_password, decode_password

__all__ = ["encode_password", "decode_password"]
