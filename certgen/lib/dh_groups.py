"""Named Diffie-Hellman groups.

2048 and 4096 bits use the RFC 7919 ffdhe groups, 1024 bits uses the First
Oakley Group of RFC 2409. Primes are the published hexadecimal values and
every group uses generator 2. Parameters are encoded as PKCS#3
``DHParameter`` structures.
"""

from dataclasses import dataclass

from asn1crypto import algos, pem

GENERATOR = 2
PEM_LABEL = "DH PARAMETERS"


@dataclass(frozen=True)
class NamedGroup:
    name: str
    bits: int
    prime_hex: str

    @property
    def prime(self) -> int:
        return int("".join(self.prime_hex.split()), 16)


# RFC 2409, section 6.2
_MODP1024 = """
    FFFFFFFF FFFFFFFF C90FDAA2 2168C234 C4C6628B 80DC1CD1 29024E08 8A67CC74
    020BBEA6 3B139B22 514A0879 8E3404DD EF9519B3 CD3A431B 302B0A6D F25F1437
    4FE1356D 6D51C245 E485B576 625E7EC6 F44C42E9 A637ED6B 0BFF5CB6 F406B7ED
    EE386BFB 5A899FA5 AE9F2411 7C4B1FE6 49286651 ECE65381 FFFFFFFF FFFFFFFF
"""

# RFC 7919, appendix A.1
_FFDHE2048 = """
    FFFFFFFF FFFFFFFF ADF85458 A2BB4A9A AFDC5620 273D3CF1 D8B9C583 CE2D3695
    A9E13641 146433FB CC939DCE 249B3EF9 7D2FE363 630C75D8 F681B202 AEC4617A
    D3DF1ED5 D5FD6561 2433F51F 5F066ED0 85636555 3DED1AF3 B557135E 7F57C935
    984F0C70 E0E68B77 E2A689DA F3EFE872 1DF158A1 36ADE735 30ACCA4F 483A797A
    BC0AB182 B324FB61 D108A94B B2C8E3FB B96ADAB7 60D7F468 1D4F42A3 DE394DF4
    AE56EDE7 6372BB19 0B07A7C8 EE0A6D70 9E02FCE1 CDF7E2EC C03404CD 28342F61
    9172FE9C E98583FF 8E4F1232 EEF28183 C3FE3B1B 4C6FAD73 3BB5FCBC 2EC22005
    C58EF183 7D1683B2 C6F34A26 C1B2EFFA 886B4238 61285C97 FFFFFFFF FFFFFFFF
"""

# RFC 7919, appendix A.3
_FFDHE4096 = """
    FFFFFFFF FFFFFFFF ADF85458 A2BB4A9A AFDC5620 273D3CF1 D8B9C583 CE2D3695
    A9E13641 146433FB CC939DCE 249B3EF9 7D2FE363 630C75D8 F681B202 AEC4617A
    D3DF1ED5 D5FD6561 2433F51F 5F066ED0 85636555 3DED1AF3 B557135E 7F57C935
    984F0C70 E0E68B77 E2A689DA F3EFE872 1DF158A1 36ADE735 30ACCA4F 483A797A
    BC0AB182 B324FB61 D108A94B B2C8E3FB B96ADAB7 60D7F468 1D4F42A3 DE394DF4
    AE56EDE7 6372BB19 0B07A7C8 EE0A6D70 9E02FCE1 CDF7E2EC C03404CD 28342F61
    9172FE9C E98583FF 8E4F1232 EEF28183 C3FE3B1B 4C6FAD73 3BB5FCBC 2EC22005
    C58EF183 7D1683B2 C6F34A26 C1B2EFFA 886B4238 611FCFDC DE355B3B 6519035B
    BC34F4DE F99C0238 61B46FC9 D6E6C907 7AD91D26 91F7F7EE 598CB0FA C186D91C
    AEFE1309 85139270 B4130C93 BC437944 F4FD4452 E2D74DD3 64F2E21E 71F54BFF
    5CAE82AB 9C9DF69E E86D2BC5 22363A0D ABC52197 9B0DEADA 1DBF9A42 D5C4484E
    0ABCD06B FA53DDEF 3C1B20EE 3FD59D7C 25E41D2B 669E1EF1 6E6F52C3 164DF4FB
    7930E9E4 E58857B6 AC7D5F42 D69F6D18 7763CF1D 55034004 87F55BA5 7E31CC7A
    7135C886 EFB4318A ED6A1E01 2D9E6832 A907600A 918130C4 6DC778F9 71AD0038
    092999A3 33CB8B7A 1A1DB93D 7140003C 2A4ECEA9 F98D0ACC 0A8291CD CEC97DCF
    8EC9B55A 7F88A46B 4DB5A851 F44182E1 C68A007E 5E655F6A FFFFFFFF FFFFFFFF
"""

GROUPS: dict[int, NamedGroup] = {
    1024: NamedGroup(name="modp1024", bits=1024, prime_hex=_MODP1024),
    2048: NamedGroup(name="ffdhe2048", bits=2048, prime_hex=_FFDHE2048),
    4096: NamedGroup(name="ffdhe4096", bits=4096, prime_hex=_FFDHE4096),
}


def group_prime(bits: int) -> int:
    """Return the prime modulus of the named group for a bit size.

    Raises:
        KeyError: If no named group exists for bits
    """
    return GROUPS[bits].prime


def group_parameters(bits: int) -> algos.DHParameters:
    """Return the PKCS#3 parameter structure of the named group."""
    return algos.DHParameters({"p": group_prime(bits), "g": GENERATOR})


def serialize_dh_parameters(parameters: algos.DHParameters) -> bytes:
    """Serialize DH parameters to PKCS#3 PEM."""
    return pem.armor(PEM_LABEL, parameters.dump())


def load_dh_parameters(data: bytes) -> tuple[int, int]:
    """Parse PKCS#3 DH parameters from PEM or DER bytes.

    Returns:
        Tuple of (prime, generator)

    Raises:
        ValueError: If data is not a PKCS#3 DH parameter structure
    """
    if pem.detect(data):
        label, _, data = pem.unarmor(data)
        if label != PEM_LABEL:
            raise ValueError(f"expected {PEM_LABEL} block, got {label}")
    parameters = algos.DHParameters.load(data, strict=True)
    return parameters["p"].native, parameters["g"].native
