from cosmos_history.classifiers.amounts import parse_amount
from cosmos_history.classifiers.involvement import analyze_involvement
from cosmos_history.classifiers.transfer_classifier import extract_transfers
from cosmos_history.models.transfer import Transfer


def count_directions(transfers: list[Transfer]) -> tuple[int, int]:
    sent = sum(1 for t in transfers if t.direction == "sent")
    received = sum(1 for t in transfers if t.direction == "received")
    return sent, received


__all__ = ["analyze_involvement", "count_directions", "extract_transfers", "parse_amount"]
