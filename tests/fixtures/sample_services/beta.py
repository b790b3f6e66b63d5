class BetaService:
    def __init__(self):
        self.started = False

    def start(self):
        self.started = True


service = BetaService()


class Nested:
    inner = BetaService
