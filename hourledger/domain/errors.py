"""
Ledger errors raised by use cases and mapped to HTTP codes by the API layer
"""


class LedgerValidationError(ValueError):
    pass


class StudentNotFoundError(LookupError):
    def __init__(self, student_id: int):
        super().__init__(f"Student {student_id} not found")
        self.student_id = student_id


class CoachNotFoundError(LookupError):
    def __init__(self, coach_id: int):
        super().__init__(f"Coach {coach_id} not found")
        self.coach_id = coach_id


class PaymentNotFoundError(LookupError):
    def __init__(self, payment_id: int):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id
