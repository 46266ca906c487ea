"""Example: drive the services directly, without Flask.

Issues a token for an event, then scans it twice with the same employee
(check-in, then check-out).
"""

from src.qr_attendance.qr_attendance.container import build_memory_container
from src.qr_attendance.qr_attendance.core.enums import ReusePolicy
from src.qr_attendance.qr_attendance.directory.memory_directory import (
    InMemoryEmployeeDirectory,
    InMemoryEventDirectory,
)
from src.qr_attendance.qr_attendance.tokens.payload import encode_payload


def main():
    events = InMemoryEventDirectory()
    events.add("standup", "Daily standup")
    employees = InMemoryEmployeeDirectory()
    employees.add("emp-001", "John Doe")

    container = build_memory_container(events=events, employees=employees)

    token = container.token_issuer.issue("standup", 15, ReusePolicy.MULTI_USE)
    qr_data = encode_payload(token)
    print("QR payload:", qr_data)

    for _ in range(2):
        result = container.token_redeemer.redeem(qr_data, "emp-001")
        print(result.kind.value, result.session)


if __name__ == "__main__":
    main()
