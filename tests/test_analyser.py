"""
Tests for single VEO analysis, unpacking and batch runs
"""

import zipfile
from pathlib import Path

import pytest

from analysis.analyser import VEOAnalyser, VEOPackage, unpack_veo, veo_name_for
from analysis.batch import BatchAnalyser, expand_paths
from conftest import content_file, information_object
from utils.config import AnalysisConfig
from validation.issues import VEOError


def zip_veo(veo_dir, zip_path, prefix=None, extra_entries=None):
    """Zip a VEO directory the way VEOs are distributed (entries under '<name>/')"""
    prefix = veo_dir.name if prefix is None else prefix
    with zipfile.ZipFile(zip_path, 'w') as archive:
        for path in sorted(veo_dir.rglob('*')):
            if path.is_file():
                name = path.relative_to(veo_dir).as_posix()
                archive.write(path, f"{prefix}/{name}" if prefix else name)
        for name, data in (extra_entries or {}).items():
            archive.writestr(name, data)
    return zip_path


@pytest.fixture
def analyser(config, registry):
    return VEOAnalyser(config, registry)


def codes(issues):
    return [(issue.component, issue.code) for issue in issues]


def test_clean_directory_passes(analyser, clean_veo):
    result = analyser.analyse(clean_veo)

    assert result.status == 'PASS'
    assert result.errors == []
    assert result.warnings == []
    assert result.io_count == 1
    assert result.parse_succeeded
    assert result.veo_dir == str(clean_veo)


def test_changed_file_fails(analyser, clean_veo):
    (clean_veo / 'Content' / 'report.pdf').write_bytes(b'tampered')

    result = analyser.analyse(clean_veo)

    assert result.status == 'FAIL'
    assert codes(result.errors) == [('ContentFileRecord', 14)]


def test_unreferenced_file_warns(analyser, clean_veo):
    (clean_veo / 'Content' / 'extra.pdf').write_bytes(b'extra')

    result = analyser.analyse(clean_veo)

    assert result.status == 'PASS'
    assert codes(result.warnings) == [('FileEntry', 1)]


def test_missing_path_gives_single_error(analyser, tmp_path):
    result = analyser.analyse(tmp_path / 'absent.veo')

    assert codes(result.errors) == [('VEOPackage', 0)]
    assert 'does not exist' in result.errors[0].message
    assert not result.parse_succeeded


def test_zipped_veo_is_unpacked_and_removed(analyser, clean_veo, config, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip')

    result = analyser.analyse(zip_path)

    assert result.status == 'PASS'
    assert result.warnings == []
    assert Path(result.veo_dir).name == 'clean.veo'
    assert Path(result.veo_dir).is_relative_to(config.output_dir.resolve())
    assert list(config.output_dir.iterdir()) == []


def test_keep_unpacked(config, registry, clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip')
    analyser = VEOAnalyser(config.with_overrides(keep_unpacked=True), registry)

    result = analyser.analyse(zip_path)

    assert (Path(result.veo_dir) / 'Content' / 'report.pdf').is_file()


def test_html_reports_written_into_unpacked_directory(config, registry, clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip')
    analyser = VEOAnalyser(config.with_overrides(html_reports=True), registry)

    result = analyser.analyse(zip_path)

    assert len(result.html_reports) == 3
    assert (Path(result.veo_dir) / 'Report-VEOContent.html').is_file()


def test_file_without_zip_extension_warns(analyser, clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo')

    result = analyser.analyse(zip_path)

    assert ('VEOPackage', 2) in codes(result.warnings)


def test_not_a_zip_file(analyser, tmp_path):
    bogus = tmp_path / 'bogus.veo.zip'
    bogus.write_bytes(b'this is not a zip file')

    result = analyser.analyse(bogus)

    assert codes(result.errors) == [('VEOPackage', 0)]


def test_verbose_describes_manifest(config, registry, clean_veo):
    analyser = VEOAnalyser(config.with_overrides(verbose=True), registry)

    result = analyser.analyse(clean_veo)

    assert "Content/report.pdf" in result.description


def test_schema_used_when_present(schema_support_dir, registry, make_veo, tmp_path):
    veo_dir = make_veo('noversion.veo', [information_object(0, [content_file('a.pdf', b'a')])],
                       version=None)
    analyser = VEOAnalyser(AnalysisConfig(support_dir=schema_support_dir,
                                          output_dir=tmp_path / 'output'), registry)

    result = analyser.analyse(veo_dir)

    assert analyser.schema_dir == schema_support_dir
    assert ('ContentManifest', 1) in codes(result.errors)
    assert not result.parse_succeeded


# =============================================================================
# UNPACKING
# =============================================================================

def test_veo_name_for():
    assert veo_name_for(Path('a/b/x.veo.zip')) == 'x.veo'
    assert veo_name_for(Path('x.veo.ZIP')) == 'x.veo'
    assert veo_name_for(Path('x.veo')) == 'x.veo'


def test_unpack_strips_veo_name(clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip')
    package = VEOPackage('clean.veo.zip')

    veo_dir = unpack_veo(zip_path, tmp_path / 'out', package)

    assert (veo_dir / 'VEOContent.xml').is_file()
    assert (veo_dir / 'Content' / 'report.pdf').is_file()
    assert not package.has_errors()
    assert not package.has_warnings()


def test_unpack_warns_once_about_other_names(clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip', prefix='')
    package = VEOPackage('clean.veo.zip')

    veo_dir = unpack_veo(zip_path, tmp_path / 'out', package)

    assert [w.code for w in package.warnings] == [3]
    assert (veo_dir / 'VEOContent.xml').is_file()


def test_unpack_refuses_parent_references(clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip',
                       extra_entries={'clean.veo/../evil.txt': b'evil'})
    package = VEOPackage('clean.veo.zip')

    unpack_veo(zip_path, tmp_path / 'out', package)

    assert [e.code for e in package.errors] == [6]
    assert not (tmp_path / 'out' / 'evil.txt').exists()
    assert not (tmp_path / 'evil.txt').exists()


def test_each_unpack_gets_its_own_directory(clean_veo, tmp_path):
    zip_path = zip_veo(clean_veo, tmp_path / 'clean.veo.zip')

    first = unpack_veo(zip_path, tmp_path / 'out', VEOPackage('clean.veo.zip'))
    second = unpack_veo(zip_path, tmp_path / 'out', VEOPackage('clean.veo.zip'))

    assert first != second
    assert first.name == second.name == 'clean.veo'
    assert (first / 'VEOContent.xml').is_file()
    assert (second / 'VEOContent.xml').is_file()


def test_bad_zip_leaves_nothing_behind(tmp_path):
    bogus = tmp_path / 'bogus.veo.zip'
    bogus.write_bytes(b'not a zip')

    with pytest.raises(VEOError):
        unpack_veo(bogus, tmp_path / 'out', VEOPackage('bogus.veo.zip'))
    assert list((tmp_path / 'out').iterdir()) == []


# =============================================================================
# BATCH
# =============================================================================

def test_expand_paths(make_veo, tmp_path):
    a = make_veo('a.veo', [information_object(0, [content_file('a.pdf', b'a')])])
    b = make_veo('b.veo', [information_object(0, [content_file('b.pdf', b'b')])])
    zipped = zip_veo(a, tmp_path / 'veos' / 'c.veo.zip')
    (tmp_path / 'veos' / 'notes.txt').write_text('not a VEO', encoding='utf-8')
    (tmp_path / 'veos' / 'plain').mkdir()

    assert expand_paths([tmp_path / 'veos']) == [a, b, zipped]
    assert expand_paths([b, tmp_path / 'missing']) == [b, tmp_path / 'missing']
    assert expand_paths([tmp_path / 'veos' / 'plain']) == []


@pytest.mark.parametrize('workers', [1, 3])
def test_batch_keeps_input_order(analyser, make_veo, tmp_path, workers):
    veos = []
    for i in range(6):
        veos.append(make_veo(f'v{i}.veo', [information_object(0, [content_file(f'f{i}.pdf', b'x' * (i + 1))])]))
    (veos[2] / 'f2.pdf').write_bytes(b'changed')
    veos.append(tmp_path / 'missing.veo')

    results = BatchAnalyser(analyser, workers=workers).analyse_all(veos)

    assert [r.veo_path for r in results] == [str(v) for v in veos]
    assert [r.status for r in results] == ['PASS', 'PASS', 'FAIL', 'PASS', 'PASS', 'PASS', 'FAIL']


def test_batch_worker_count_is_at_least_one(analyser):
    assert BatchAnalyser(analyser, workers=0).workers == 1


@pytest.mark.parametrize('workers', [1, 2])
def test_same_named_zips_do_not_share_a_directory(config, registry, make_veo, tmp_path, workers):
    veo_dir = make_veo('x.veo', [information_object(0, [content_file('a.pdf', b'good')])])
    for name in ('a', 'b'):
        (tmp_path / name).mkdir()
    good_zip = zip_veo(veo_dir, tmp_path / 'a' / 'x.veo.zip')
    (veo_dir / 'a.pdf').write_bytes(b'tampered')
    bad_zip = zip_veo(veo_dir, tmp_path / 'b' / 'x.veo.zip')
    analyser = VEOAnalyser(config.with_overrides(keep_unpacked=True), registry)

    results = BatchAnalyser(analyser, workers=workers).analyse_all([good_zip, bad_zip])

    assert [r.status for r in results] == ['PASS', 'FAIL']
    assert results[0].veo_dir != results[1].veo_dir
    assert (Path(results[0].veo_dir) / 'a.pdf').read_bytes() == b'good'
    assert (Path(results[1].veo_dir) / 'a.pdf').read_bytes() == b'tampered'
