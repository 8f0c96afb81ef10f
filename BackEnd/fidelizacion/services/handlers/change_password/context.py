# fidelizacion/services/handlers/change_password/context.py
class ChangePasswordContext:
    def __init__(self, db, current_user, current_password, new_password):
        self.db = db
        self.current_user = current_user
        self.current_password = current_password
        self.new_password = new_password
