"""Domain errors raised by the employee service and mapped to HTTP by the routers."""


class EmployeeNotFoundError(Exception):
    """Referenced employee id does not exist."""

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(f"Employee with ID {employee_id} not found")


class InvalidManagerError(Exception):
    """Manager reference points at a missing employee or at the employee itself."""

    def __init__(self, manager_id: int, reason: str):
        self.manager_id = manager_id
        self.reason = reason
        super().__init__(f"Invalid manager {manager_id}: {reason}")


class DuplicateEmailError(Exception):
    """Another employee already uses this email address."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An employee with email {email} already exists")
