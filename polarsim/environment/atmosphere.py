"""
International Standard Atmosphere (ISA)

Provides atmospheric properties as a function of altitude:
- Temperature
- Pressure
- Density

Units: SI (m, K, Pa, kg/m³)
"""

import numpy as np

G = 9.80665  # m/s^2, standard gravity


class StandardAtmosphere:
    """
    ISA model, troposphere and lower stratosphere.

    Parameters
    ----------
    altitude : float
        Geopotential altitude in metres above MSL

    Attributes
    ----------
    temperature : float
        Static temperature (K)
    pressure : float
        Static pressure (Pa)
    density : float
        Air density (kg/m³)

    Notes
    -----
    - Troposphere: 0 - 11,000 m (temperature decreases 6.5 K/km)
    - Lower Stratosphere: 11,000 - 20,000 m (isothermal)

    Altitudes outside [0, 20,000] m are clipped.
    """

    # Sea level conditions
    T0 = 288.15      # K
    P0 = 101325.0    # Pa

    # Gas constant for air
    R = 287.05287    # J/(kg·K)

    # Layer boundaries (m)
    h_trop = 11000.0
    h_max = 20000.0

    # Temperature lapse rate in the troposphere (K/m)
    lapse_trop = -0.0065

    def __init__(self, altitude: float = 0.0):
        self.altitude = altitude
        self._compute_properties()

    def _compute_properties(self):
        """Compute all atmospheric properties at current altitude."""
        h = float(np.clip(self.altitude, 0.0, self.h_max))
        exponent_trop = -G / (self.lapse_trop * self.R)

        if h <= self.h_trop:
            self.temperature = self.T0 + self.lapse_trop * h
            self.pressure = self.P0 * (self.temperature / self.T0) ** exponent_trop
        else:
            T_trop = self.T0 + self.lapse_trop * self.h_trop
            P_trop = self.P0 * (T_trop / self.T0) ** exponent_trop
            self.temperature = T_trop
            self.pressure = P_trop * np.exp(-G * (h - self.h_trop) / (self.R * T_trop))

        # Density from ideal gas law
        self.density = self.pressure / (self.R * self.temperature)

    def update(self, altitude: float):
        """Update atmospheric properties for new altitude (m)."""
        self.altitude = altitude
        self._compute_properties()

    def get_dynamic_pressure(self, velocity: float) -> float:
        """
        Compute dynamic pressure.

        Parameters
        ----------
        velocity : float
            True airspeed in m/s

        Returns
        -------
        float
            Dynamic pressure q = 0.5 * rho * V²  (Pa)
        """
        return 0.5 * self.density * velocity ** 2

    def __repr__(self):
        return (f"StandardAtmosphere(altitude={self.altitude:.0f} m, "
                f"T={self.temperature - 273.15:.1f}°C, "
                f"P={self.pressure / 100:.1f} hPa, "
                f"rho={self.density:.4f} kg/m³)")


def density_at(altitude: float) -> float:
    """ISA air density (kg/m³) at altitude (m)."""
    return StandardAtmosphere(altitude).density


if __name__ == "__main__":
    print(f"{'Alt (m)':<10} {'T (C)':<10} {'P (hPa)':<12} {'rho (kg/m3)':<12}")
    print("-" * 46)
    for alt in [0, 1000, 2000, 4000, 11000, 15000]:
        atm = StandardAtmosphere(alt)
        print(f"{alt:<10} {atm.temperature - 273.15:<10.2f} {atm.pressure / 100:<12.2f} "
              f"{atm.density:<12.4f}")
