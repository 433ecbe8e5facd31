"""画像・メディアルールのユニットテスト。"""

from archguard.models.validation import RuleOptions
from archguard.rules.media import check_media


class TestCheckMedia:
    def test_raw_img_tags_are_counted(self, options: RuleOptions) -> None:
        content = '<div>\n  <img src="/a.png" alt="a" />\n  <img src="/b.png" alt="b" />\n</div>\n'
        result = check_media("components/gallery.tsx", content, options)
        assert len(result.errors) == 1
        assert "Found 2 raw <img>" in result.errors[0]
        assert "'next/image'" in result.errors[0]

    def test_optimized_image_is_clean(self, options: RuleOptions) -> None:
        content = (
            'import Image from "next/image";\n\n'
            "export default function Logo() {\n"
            '  return <Image src="/logo.png" alt="Logo" width={120} height={40} />;\n'
            "}\n"
        )
        assert check_media("components/logo.tsx", content, options).is_clean

    def test_image_without_alt_is_warning(self, options: RuleOptions) -> None:
        content = 'import Image from "next/image";\n\nconst logo = <Image src="/logo.png" width={1} height={1} />;\n'
        result = check_media("components/logo.tsx", content, options)
        assert result.errors == []
        assert any("(image-missing-alt)" in w for w in result.warnings)

    def test_iframe_without_lazy_loading_is_warning(self, options: RuleOptions) -> None:
        content = '<iframe src="https://maps.example.com" title="map"></iframe>\n'
        result = check_media("components/map.tsx", content, options)
        assert result.errors == []
        assert any("(iframe-eager-loading)" in w for w in result.warnings)

    def test_iframe_with_lazy_loading_is_clean(self, options: RuleOptions) -> None:
        content = '<iframe src="https://maps.example.com" loading="lazy" title="map"></iframe>\n'
        assert check_media("components/map.tsx", content, options).is_clean

    def test_custom_image_module_is_named(self) -> None:
        options = RuleOptions.model_validate({"imageModule": "@/components/optimized-image"})
        result = check_media("components/a.tsx", '<img src="/a.png" />', options)
        assert "'@/components/optimized-image'" in result.errors[0]
