from __future__ import annotations

from providers.registry import build_catalog


_STREAMTHEWORLD = "https://playerservices.streamtheworld.com/api/livestream-redirect"

# Country categories first, then genres. Genre streams are non-commercial and HTTPS only.
RADIO_CATALOG = build_catalog(
    [
        (
            "Bulgaria",
            [
                {
                    "name": "BG Radio",
                    "url": f"{_STREAMTHEWORLD}/BG_RADIOAAC_H.aac",
                    "fallbackUrls": [f"{_STREAMTHEWORLD}/BG_RADIOAAC_L.aac"],
                },
                {
                    "name": "Radio Energy",
                    "url": f"{_STREAMTHEWORLD}/RADIO_ENERGYAAC_H.aac",
                    "fallbackUrls": [f"{_STREAMTHEWORLD}/RADIO_ENERGYAAC_L.aac"],
                },
                {
                    "name": "Magic FM",
                    "url": "https://bss1.neterra.tv/magicfm/magicfm.m3u8",
                    "fallbackUrls": ["https://bss.neterra.tv/rtplive/magicfmradio_live.stream/playlist.m3u8"],
                },
                {
                    "name": "Avto Radio",
                    "url": f"{_STREAMTHEWORLD}/AVTORADIOAAC_H.aac",
                    "fallbackUrls": [f"{_STREAMTHEWORLD}/AVTORADIOAAC_L.aac"],
                },
                {"name": "The Voice Radio", "url": "https://bss.neterra.tv/rtplive/thevoiceradio_live.stream/playlist.m3u8"},
                {"name": "bTV Radio", "url": "https://cdn.bweb.bg/radio/btv-radio.mp3"},
            ],
        ),
        (
            "Serbia",
            [
                {"name": "Radio 021", "url": "https://centova.dukahosting.com/proxy/021kafe/stream"},
            ],
        ),
        (
            "Russia",
            [
                {"name": "Radio Record", "url": "https://radiorecord.hostingradio.ru/rr_main96.aacp"},
                {"name": "Russian Gold", "url": "https://radiorecord.hostingradio.ru/russiangold96.aacp"},
                {"name": "Relax FM", "url": "https://pub0201.101.ru/stream/trust/mp3/128/24"},
            ],
        ),
        (
            "Jazz",
            [
                {"name": "KCSM Jazz", "url": "https://ice7.securenetsystems.net/KCSM2"},
                {"name": "Jazz24", "url": "https://live.amperwave.net/direct/ppm-jazz24mp3-ibc1"},
                {"name": "ABC Jazz", "url": "https://live-radio01.mediahubaustralia.com/JAZW/mp3/"},
            ],
        ),
        (
            "Classical",
            [
                {"name": "WQXR Classical", "url": "https://stream.wqxr.org/wqxr"},
                {"name": "ABC Classic", "url": "https://live-radio01.mediahubaustralia.com/2FMW/mp3/"},
            ],
        ),
        (
            "Metal",
            [
                {"name": "KNAC Pure Rock", "url": "https://stream.knac.com/knac"},
            ],
        ),
        (
            "Ambient",
            [
                {"name": "SomaFM Drone Zone", "url": "https://ice1.somafm.com/dronezone-128-mp3"},
                {"name": "SomaFM Space Station", "url": "https://ice1.somafm.com/spacestation-128-mp3"},
                {"name": "SomaFM Deep Space One", "url": "https://ice1.somafm.com/deepspaceone-128-mp3"},
                {"name": "SomaFM Groove Salad", "url": "https://ice1.somafm.com/groovesalad-128-mp3"},
            ],
        ),
        (
            "Electronic",
            [
                {"name": "SomaFM Secret Agent", "url": "https://ice1.somafm.com/secretagent-128-mp3"},
                {"name": "SomaFM DEF CON", "url": "https://ice1.somafm.com/defcon-128-mp3"},
                {"name": "SomaFM Beat Blender", "url": "https://ice1.somafm.com/beatblender-128-mp3"},
            ],
        ),
    ]
)
