"""Tests for px_forge.core.project: builtins and dependency edges."""

from px_forge.core.assets import BrushRef, Fill, Map, Prefab, Shader, Shape, Stamp, StampRef
from px_forge.core.graph import AssetId
from px_forge.core.palette import PaletteDef
from px_forge.core.project import Project


class TestBuiltins:
    def test_registered(self):
        project = Project.with_builtins()
        assert 'default' in project.palettes
        assert 'default' in project.shaders
        assert {'corner', 'edge-h', 'edge-v', 'solid', 'fill', 'transparent'} <= set(project.stamps)
        assert {'solid', 'checker', 'noise'} <= set(project.brushes)
        assert {'web', 'sheet', 'p8'} <= set(project.targets)

    def test_user_asset_replaces_builtin(self):
        project = Project.with_builtins()
        project.add_stamp(Stamp.parse('solid', ['.']))
        assert project.stamps['solid'].glyph is None


class TestGraph:
    def test_palette_parent_edge(self):
        project = Project()
        project.add_palette(PaletteDef('base'))
        project.add_palette(PaletteDef('hero', parent='base'))
        graph = project.graph()
        assert graph.dependencies_of(AssetId.palette('hero')) == [AssetId.palette('base')]

    def test_shader_edges(self):
        project = Project()
        project.add_palette(PaletteDef('base'))
        project.add_shader(Shader('warm', palette='base'))
        project.add_shader(Shader('dusk', inherits='warm'))
        graph = project.graph()
        assert graph.dependencies_of(AssetId.shader('warm')) == [AssetId.palette('base')]
        assert graph.dependencies_of(AssetId.shader('dusk')) == [AssetId.shader('warm')]

    def test_shape_edges_only_to_existing_assets(self):
        project = Project.with_builtins()
        shape = Shape(
            'wall',
            grid=['ab'],
            legend={'a': StampRef('solid'), 'b': Fill('checker'), 'c': BrushRef('missing')},
        )
        project.add_shape(shape)
        deps = project.graph().dependencies_of(AssetId.shape('wall'))
        assert deps == [AssetId.stamp('solid'), AssetId.brush('checker')]

    def test_composite_prefers_shapes(self):
        project = Project()
        project.add_shape(Shape('door'))
        project.add_prefab(Prefab('door'))
        assert project.composite_target('door') == AssetId.shape('door')
        assert project.composite_target('nothing') is None

    def test_map_skips_empty(self):
        project = Project()
        project.add_prefab(Prefab('room'))
        project.add_map(Map('level', grid=['R.'], legend={'R': 'room', '.': 'empty'}))
        assert project.graph().dependencies_of(AssetId.map('level')) == [AssetId.prefab('room')]

    def test_build_order_places_pieces_first(self):
        project = Project.with_builtins()
        project.add_map(Map('level', grid=['R'], legend={'R': 'room'}))
        project.add_prefab(Prefab('room', grid=['W'], legend={'W': 'wall'}))
        project.add_shape(Shape('wall', grid=['+']))
        order = project.build_order()
        assert order.index(AssetId.shape('wall')) < order.index(AssetId.prefab('room'))
        assert order.index(AssetId.prefab('room')) < order.index(AssetId.map('level'))
