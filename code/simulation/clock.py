# simulation/clock.py


class SimClock:
    """
    Horloge de simulation. Elle est injectée dans le moteur et le temps courant
    est passé explicitement aux routeurs.
    """

    def __init__(self, start=0.0):
        self.start = float(start)
        self.time = float(start)

    def __str__(self):
        return f"SimClock(t={self.time})"

    def advance(self, dt):
        """
        Avance l'horloge de dt secondes.

        Args:
            dt (float): pas de temps (positif)

        Returns:
            float: nouveau temps courant
        """
        if dt < 0:
            raise ValueError("Le temps de simulation ne peut pas reculer")
        self.time += dt
        return self.time

    def set_time(self, t):
        if t < self.time:
            raise ValueError("Le temps de simulation ne peut pas reculer")
        self.time = float(t)

    def reset(self):
        """Remet l'horloge à son instant initial (entre deux simulations)."""
        self.time = self.start
