"""
NASA Data Hub integration for Unfolded Circle Remote.

Browse live NASA and space data feeds as dashboard pages: Astronomy Picture
of the Day, Mars rover photography, the exoplanet catalog, upcoming launches
with ISS tracking, space weather events, Earth imagery and media search.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

__version__ = "0.2.0"
__author__ = "Meir Miyara"
__email__ = "meir.miyara@gmail.com"
