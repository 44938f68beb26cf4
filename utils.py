import numpy as np


def vec(list):
    """Handy shorthand to make a double-precision float array."""
    return np.array(list, dtype=np.float64)

def normalize(v):
    """Return a unit vector in the direction of the vector v."""
    return v / np.linalg.norm(v)


class Vector:

    def __init__(self, x, y, z):
        """Create a 3D vector from its components.

        Vectors are values: every operation returns a new Vector and never
        modifies its operands.  The magnitude is computed once, here, so it
        always matches the components.

        Parameters:
          x, y, z : float -- the components
        """
        self._xyz = vec([x, y, z])
        self._xyz.flags.writeable = False
        self._magnitude = float(np.linalg.norm(self._xyz))

    @classmethod
    def from_array(cls, a):
        """Create a Vector from any length-3 sequence or (3,) array."""
        a = np.asarray(a, dtype=np.float64)
        if a.shape != (3,):
            raise ValueError(f"expected 3 components, got shape {a.shape}")
        return cls(a[0], a[1], a[2])

    @property
    def x(self):
        return float(self._xyz[0])

    @property
    def y(self):
        return float(self._xyz[1])

    @property
    def z(self):
        return float(self._xyz[2])

    @property
    def magnitude(self):
        """The cached Euclidean norm."""
        return self._magnitude

    def dot(self, other):
        return float(np.dot(self._xyz, other._xyz))

    def cross(self, other):
        """Right-handed cross product self x other."""
        return Vector.from_array(np.cross(self._xyz, other._xyz))

    def add(self, other):
        return Vector.from_array(self._xyz + other._xyz)

    def subtract(self, other):
        return Vector.from_array(self._xyz - other._xyz)

    def scale(self, factor):
        return Vector.from_array(self._xyz * factor)

    def normalize(self):
        """Return the unit vector in this direction.

        Precondition: magnitude > 0.  A zero vector gives NaN components
        rather than an error.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            return Vector.from_array(self._xyz / self._magnitude)

    def distance(self, other):
        """Euclidean distance between two points."""
        return self.subtract(other).magnitude

    __add__ = add
    __sub__ = subtract

    def __mul__(self, factor):
        return self.scale(factor)

    __rmul__ = __mul__

    def __neg__(self):
        return self.scale(-1.0)

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def __array__(self, dtype=None, copy=None):
        return np.array(self._xyz, dtype=dtype)

    def __eq__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        return bool(np.array_equal(self._xyz, other._xyz))

    def __hash__(self):
        return hash((self.x, self.y, self.z))

    def __repr__(self):
        return f"Vector({self.x}, {self.y}, {self.z})"
