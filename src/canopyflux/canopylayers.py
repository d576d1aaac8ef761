"""
Canopy layers class: Includes parameters and functions to partition top-of-canopy light over crown layers and cohorts.
"""

import numpy as np
from attrs import define, frozen, field

@frozen(eq=False)
class LayerLight:
    """
    Light partitioning result of one timestep. Layer arrays are indexed from 0 (top layer, layer 1).
    """
    f_light: np.ndarray     ## Fraction of top-of-canopy light incident at the top of each layer, size nlayers_max+1 (the last value is the light below the lowest layer)
    fapar_tree: np.ndarray  ## Fractional light absorption of an individual crown, per cohort
    fapar_layer: np.ndarray  ## Fraction of incident light absorbed by each layer
    LAIlayer: np.ndarray    ## Leaf area index per layer, corrected for gaps

    def light_fraction(self, layer):
        """Fraction of top-of-canopy light incident on the given layer (1 = top)"""
        return self.f_light[layer - 1]

@define
class CanopyLayers:
    """
    Canopy discretisation into crown layers for light absorption. Cohorts are assigned to a layer
    by the vegetation dynamics; this class only reads that assignment.
    """
    nlayers_max: int = field(default=9)  ## Maximum number of canopy layers considered
    kappa: float = field(default=0.5)    ## Light extinction coefficient of crown layers (-)
    f_gap: float = field(default=0.1)    ## Fraction of ground not covered by crowns within a layer (-)

    def index_layer(self, layer):
        """
        Clamps a cohort layer index into [1, nlayers_max].
        """
        return max(1, min(layer, self.nlayers_max))

    def crown_fapar(self, leafarea, crownarea):
        """
        Calculates the fraction of light absorbed by an individual crown using Beer-Lambert's law
        with the leaf area index within the crown.

        Parameters
        ----------
        leafarea : float
            Leaf area per individual, m2
        crownarea : float
            Crown area per individual, m2

        Returns
        -------
        fapar : float
            Fractional absorption of light incident on the crown (-)
        """
        if leafarea <= 0.0 or crownarea <= 0.0:
            return 0.0
        return 1.0 - np.exp(-self.kappa * leafarea / crownarea)

    def calculate(self, cohorts):
        """
        Calculates the light fraction received at each crown layer and the light absorption of each cohort.

        Parameters
        ----------
        cohorts : sequence of Cohort
            Cohorts of the vegetation tile

        Returns
        -------
        LayerLight

        Notes
        -----
        The light fraction at the top of layer i is that of layer i-1 reduced by the fraction absorbed
        in layer i-1, where the absorbed fraction is the crown area weighted sum of the individual crown
        absorption. This conserves energy: light absorbed by all layers plus light reaching the ground
        equals the top-of-canopy light. A layer without leaves does not attenuate light.
        """
        LAIlayer = np.zeros(self.nlayers_max)
        fapar_layer = np.zeros(self.nlayers_max)
        fapar_tree = np.zeros(len(cohorts))

        for i, cc in enumerate(cohorts):
            ilayer = self.index_layer(cc.layer) - 1
            LAIlayer[ilayer] += cc.leafarea * cc.nindivs / (1.0 - self.f_gap)
            fapar_tree[i] = self.crown_fapar(cc.leafarea, cc.crownarea)
            fapar_layer[ilayer] += fapar_tree[i] * cc.crownarea * cc.nindivs

        # Absorbed fraction cannot exceed the incident light
        fapar_layer = np.clip(fapar_layer, 0.0, 1.0)

        f_light = np.ones(self.nlayers_max + 1)
        f_light[1:] = np.cumprod(1.0 - fapar_layer)

        return LayerLight(f_light=f_light, fapar_tree=fapar_tree, fapar_layer=fapar_layer, LAIlayer=LAIlayer)
