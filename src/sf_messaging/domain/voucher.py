"""VoucherGenerator — redemption codes for products that auto-deliver on payment.

Codes look like ``V-7K2Q-M9XD``. They are drawn independently with `secrets`
and are not checked against previously issued codes; with 36**8 combinations
a collision is accepted as negligible.
"""
import secrets
import string

ALPHABET = string.ascii_uppercase + string.digits
BLOCK_LENGTH = 4
HEADER = "=== {name} ==="
FOOTER = "=== Thank you for your purchase ==="


class VoucherGenerator:
    def __init__(self, alphabet: str = ALPHABET) -> None:
        self._alphabet = alphabet

    def _block(self) -> str:
        return "".join(secrets.choice(self._alphabet) for _ in range(BLOCK_LENGTH))

    def new_code(self) -> str:
        return f"V-{self._block()}-{self._block()}"

    def issue(self, count: int) -> list[str]:
        if count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        return [self.new_code() for _ in range(count)]


def compose_message(
    product_name: str, template: str, quantity: int, codes: list[str]
) -> tuple[str, str]:
    """Build (title, content) delivering `codes` under the product's message template."""
    title = f"Your order: {product_name}"
    lines = [HEADER.format(name=product_name)]
    if template:
        lines.extend([template.strip(), ""])
    lines.append(f"Quantity: {quantity}")
    lines.extend(codes)
    lines.append(FOOTER)
    return title, "\n".join(lines)
