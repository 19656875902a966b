from bridge_service.app.services.matcher import Block, Operation

GLITCH_BLOCK = "0x" + "ab" * 32
ETH_TX = "0x" + "cd" * 32
ETH_ADDRESS = "0x00000000000000000000000000000000000000e1"
GLITCH_ADDRESS = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"


def make_operation(section, method, *args, hash="0x00", signer=None, nonce=None):
    return Operation(
        section=section,
        method=method,
        args=tuple(args),
        hash=hash,
        is_signed=signer is not None,
        signer=signer,
        nonce=nonce,
    )


def make_block(*operations, hash=GLITCH_BLOCK):
    return Block(hash=hash, operations=tuple(operations), number=42)
