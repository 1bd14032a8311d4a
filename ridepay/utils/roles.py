ROLE_PARENT = "parent"
ROLE_DRIVER = "driver"
ROLE_ADMIN = "admin"

ALL_ROLES = (ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN)
