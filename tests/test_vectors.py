import pytest

from glslscene.vectors import IVec2, Vec2, Vec3, Vec4


def approx_vec(values):
    return pytest.approx(tuple(values))


def test_defaults_are_zero():
    assert tuple(Vec3()) == (0.0, 0.0, 0.0)
    assert tuple(Vec4()) == (0.0, 0.0, 0.0, 0.0)
    assert tuple(Vec2()) == (0.0, 0.0)
    assert tuple(IVec2()) == (0, 0)


def test_ivec2_resolution_from_source_scene():
    resolution = IVec2(1280, 720)
    assert (resolution.x, resolution.y) == (1280, 720)


def test_from_vec4_drops_w():
    assert Vec3.from_vec4(Vec4(1.0, 2.0, 3.0, 4.0)) == Vec3(1.0, 2.0, 3.0)


def test_indexing():
    v = Vec3(1.0, 2.0, 3.0)
    assert (v[0], v[1], v[2]) == (1.0, 2.0, 3.0)
    w = Vec4(1.0, 2.0, 3.0, 4.0)
    assert w[3] == 4.0


def test_index_out_of_range():
    with pytest.raises(IndexError):
        Vec3(1.0, 2.0, 3.0)[5]


def test_add_sub_round_trip():
    a = Vec3(0.343, 0.5478, 0.227)
    b = Vec3(0.213, 0.5478, 0.227)
    assert tuple((a - b) + b) == approx_vec(a)


def test_multiply_componentwise_and_scalar():
    v = Vec3(1.0, 2.0, 3.0)
    assert v * Vec3(2.0, 2.0, 2.0) == v * 2.0
    assert 2.0 * v == v * 2.0


def test_multiply_by_unsupported_type():
    with pytest.raises(TypeError):
        Vec3(1.0, 2.0, 3.0) * "x"


def test_minimum_maximum():
    a = Vec3(1.0, 5.0, -2.0)
    b = Vec3(3.0, 0.0, -1.0)
    assert a.minimum(b) == Vec3(1.0, 0.0, -2.0)
    assert a.maximum(b) == Vec3(3.0, 5.0, -1.0)


def test_cross_is_orthogonal():
    a = Vec3(1.0, 2.0, 3.0)
    b = Vec3(-4.0, 0.5, 2.0)
    c = a.cross(b)
    assert c.dot(a) == pytest.approx(0.0)
    assert c.dot(b) == pytest.approx(0.0)


def test_cross_of_axes():
    assert Vec3(1.0, 0.0, 0.0).cross(Vec3(0.0, 1.0, 0.0)) == Vec3(0.0, 0.0, 1.0)


def test_cornell_light_area():
    position = Vec3(0.34299999, 0.54779997, 0.22700010)
    u = Vec3(0.34299999, 0.54779997, 0.33200008) - position
    v = Vec3(0.21300001, 0.54779997, 0.22700010) - position
    area = u.cross(v).length()
    assert u.dot(v) == pytest.approx(0.0)
    assert area == pytest.approx(u.length() * v.length())


def test_boy_light_edges():
    position = Vec3(-0.103555, 0.284840, 0.606827)
    corner_u = Vec3(-0.103555, 0.465656, 0.521355)
    corner_v = Vec3(0.096445, 0.284840, 0.606827)
    u = corner_u - position
    v = corner_v - position
    assert tuple(u + position) == approx_vec(corner_u)
    assert u.x == pytest.approx(0.0)
    assert v.length() == pytest.approx(0.2)
    assert u.cross(v).length() == pytest.approx(u.length() * v.length())


def test_pow():
    assert Vec3(2.0, 3.0, 4.0).pow(2.0) == Vec3(4.0, 9.0, 16.0)


def test_length_and_distance():
    a = Vec3(1.0, 2.0, 2.0)
    assert a.length() == pytest.approx(3.0)
    assert a.distance(Vec3()) == pytest.approx(a.length())
    assert a.distance(a) == 0.0


def test_clamp():
    v = Vec3(-1.0, 0.5, 2.0)
    assert v.clamp(Vec3(0.0, 0.0, 0.0), Vec3(1.0, 1.0, 1.0)) == Vec3(0.0, 0.5, 1.0)


def test_normalize_has_unit_length():
    n = Vec3(0.3, -4.0, 12.0).normalize()
    assert n.length() == pytest.approx(1.0)


def test_normalize_zero_vector_raises():
    with pytest.raises(ZeroDivisionError):
        Vec3().normalize()


def test_vectors_are_immutable():
    v = Vec3(1.0, 2.0, 3.0)
    with pytest.raises(AttributeError):
        v.x = 5.0
    assert v == Vec3(1.0, 2.0, 3.0)
    assert v.x == 1.0